"""Core building blocks of a lightweight Mumble voice server: varints, message framing, voice packets, OCB-AES crypto, locks and server state."""

__version__ = "0.1.0"

__all__ = ["client", "crypt", "errors", "framing", "state", "sync", "varint", "voice"]