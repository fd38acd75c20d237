"""Connected clients, channels and whisper targets."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field

from .crypt import CryptState

DEFAULT_TARGET_CAPACITY = 2048
_CAPACITY_VARIABLE = "CLIENT_CAPACITY"


@dataclass
class VoiceTarget:
    """Sessions and channels a client whispers to."""

    sessions: set[int] = field(default_factory=set)
    channels: set[int] = field(default_factory=set)


@dataclass
class Channel:
    """A voice channel and the sessions listening to it from elsewhere."""

    id: int
    parent_id: int | None
    name: str
    description: str = ""
    temporary: bool = False
    listeners: set[int] = field(default_factory=set)


def _target_capacity() -> int:
    raw = os.environ.get(_CAPACITY_VARIABLE, str(DEFAULT_TARGET_CAPACITY))
    if not raw or not (raw.isascii() and raw.isdigit()):
        raise ValueError(f"invalid {_CAPACITY_VARIABLE}: {raw!r}")
    return int(raw)


def _default_targets() -> list[VoiceTarget]:
    return [VoiceTarget() for _ in range(_target_capacity())]


@dataclass(eq=False)
class Client:
    """State the server keeps for one connected client."""

    session_id: int
    username: str
    tokens: list[str] = field(default_factory=list)
    codecs: list[int] = field(default_factory=list)
    channel_id: int = 0
    use_opus: bool = False
    mute: bool = False
    deaf: bool = False
    crypt_state: CryptState = field(default_factory=CryptState)
    udp_socket_addr: tuple[str, int] | None = None
    targets: list[VoiceTarget] = field(default_factory=_default_targets)
    last_ping: float = field(default_factory=time.monotonic)

    def get_target(self, index: int) -> VoiceTarget | None:
        """Return the voice target at a zero-based index, or None if out of range."""
        if 0 <= index < len(self.targets):
            return self.targets[index]
        return None

    def update(self, mute: bool | None = None, deaf: bool | None = None) -> None:
        """Apply the mute and deaf flags that are given; None leaves a flag unchanged."""
        if mute is not None:
            self.mute = mute
        if deaf is not None:
            self.deaf = deaf

    def join_channel(self, channel_id: int) -> int | None:
        """Move into a channel and return the one left, or None if already there."""
        current = self.channel_id
        if channel_id == current:
            return None
        self.channel_id = channel_id
        return current