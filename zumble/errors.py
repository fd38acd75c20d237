"""Exceptions raised by the server."""

from __future__ import annotations


class MumbleError(Exception):
    """Base class for server errors."""

    default_message = "mumble error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)


class UnexpectedMessageKind(MumbleError, ValueError):
    """A control message of an unknown or unexpected kind was received."""

    def __init__(self, kind: int) -> None:
        self.kind = kind
        super().__init__(f"unexpected message kind: {kind}")


class ForceDisconnect(MumbleError):
    """The client is being disconnected by the server."""

    default_message = "force disconnecting client"


class OperationTimeout(MumbleError, TimeoutError):
    """A network operation did not finish in time."""

    default_message = "timeout error"


class DecryptError(MumbleError):
    """A voice packet could not be decrypted or decoded."""

    default_message = "voice decrypt error"


class DecryptEof(DecryptError):
    """The voice packet ended early."""

    default_message = "unexpected eof"


class DecryptRepeat(DecryptError):
    """The voice packet was already received."""

    default_message = "repeat error"


class DecryptLate(DecryptError):
    """The voice packet arrived too late to be accepted."""

    default_message = "late error"


class DecryptMac(DecryptError):
    """The voice packet's authentication tag did not match."""

    default_message = "mac error"