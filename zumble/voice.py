"""Voice packets carried over UDP or tunnelled through the control connection."""

from __future__ import annotations

import io
from dataclasses import dataclass, replace
from typing import ClassVar, Union

from .errors import DecryptEof, DecryptError
from .varint import encode_varint, read_varint

_OPUS_TERMINATOR = 0x2000
_CONTINUATION = 0x80
_MAX_FRAME = 0x7F


@dataclass(frozen=True)
class _Frames:
    """Audio frames of a framed codec."""

    kind: ClassVar[int]
    frames: tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "frames", tuple(bytes(frame) for frame in self.frames))


@dataclass(frozen=True)
class CeltAlpha(_Frames):
    """CELT 0.7.0 encoded audio frames."""

    kind: ClassVar[int] = 0


@dataclass(frozen=True)
class Speex(_Frames):
    """Speex encoded audio frames."""

    kind: ClassVar[int] = 2


@dataclass(frozen=True)
class CeltBeta(_Frames):
    """CELT 0.11.0 encoded audio frames."""

    kind: ClassVar[int] = 3


@dataclass(frozen=True)
class Opus:
    """One Opus encoded frame with its end-of-transmission flag."""

    kind: ClassVar[int] = 4
    frame: bytes
    terminated: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "frame", bytes(self.frame))


VoicePayload = Union[CeltAlpha, CeltBeta, Speex, Opus]

_FRAMED_KINDS: dict[int, type[_Frames]] = {cls.kind: cls for cls in (CeltAlpha, Speex, CeltBeta)}


@dataclass(frozen=True)
class Ping:
    """Voice ping carrying an opaque timestamp to be echoed back."""

    timestamp: int

    def into_client_bound(self, session_id: int) -> Ping:
        """Return the packet as sent to clients; pings carry no session."""
        return self


@dataclass(frozen=True)
class Audio:
    """Audio packet; session_id is None when the packet travels to the server."""

    target: int
    session_id: int | None
    seq_num: int
    payload: VoicePayload
    position_info: bytes | None = None

    def into_client_bound(self, session_id: int) -> Audio:
        """Return the packet as sent to clients, tagged with the speaker's session."""
        return replace(self, session_id=session_id)


VoicePacket = Union[Ping, Audio]


def _read_exact(stream: io.BytesIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) < count:
        raise DecryptEof()
    return data


def _decode(stream: io.BytesIO, clientbound: bool) -> VoicePacket:
    header = _read_exact(stream, 1)[0]
    kind = header >> 5
    target = header & 0b11111

    if kind == 1:
        return Ping(read_varint(stream))

    session_id = read_varint(stream) & 0xFFFF_FFFF if clientbound else None
    seq_num = read_varint(stream)

    payload: VoicePayload
    if kind in _FRAMED_KINDS:
        frames = []
        while True:
            frame_header = _read_exact(stream, 1)[0]
            frames.append(_read_exact(stream, frame_header & _MAX_FRAME))
            if not frame_header & _CONTINUATION:
                break
        payload = _FRAMED_KINDS[kind](tuple(frames))
    elif kind == Opus.kind:
        opus_header = read_varint(stream)
        length = opus_header & ~_OPUS_TERMINATOR
        payload = Opus(_read_exact(stream, length), bool(opus_header & _OPUS_TERMINATOR))
    else:
        raise DecryptError("unknown voice packet type")

    rest = stream.read()
    return Audio(target, session_id, seq_num, payload, rest or None)


def decode_voice_packet(data: bytes, clientbound: bool = False) -> VoicePacket:
    """Decode a plain voice packet.

    Packets sent to clients carry the speaker's session; set clientbound for those.
    """
    stream = io.BytesIO(bytes(data))
    try:
        return _decode(stream, clientbound)
    except EOFError:
        raise DecryptEof() from None


def encode_voice_packet(packet: VoicePacket, clientbound: bool = True) -> bytes:
    """Encode a voice packet; the session is written only when clientbound."""
    if isinstance(packet, Ping):
        return b"\x20" + encode_varint(packet.timestamp)

    payload = packet.payload
    out = bytearray([payload.kind << 5 | packet.target & 0b11111])
    if clientbound:
        out += encode_varint(packet.session_id or 0)
    out += encode_varint(packet.seq_num)

    if isinstance(payload, Opus):
        terminator = _OPUS_TERMINATOR if payload.terminated else 0
        out += encode_varint(terminator | len(payload.frame))
        out += payload.frame
    else:
        last = len(payload.frames) - 1
        for position, frame in enumerate(payload.frames):
            if len(frame) > _MAX_FRAME:
                raise ValueError(f"audio frame too long: {len(frame)} bytes")
            continuation = _CONTINUATION if position < last else 0
            out.append(continuation | len(frame))
            out += frame

    if packet.position_info:
        out += packet.position_info
    return bytes(out)