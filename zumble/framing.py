"""Framing of control messages on the TCP connection."""

from __future__ import annotations

import asyncio
import struct
from enum import IntEnum

from .errors import UnexpectedMessageKind

_HEADER = struct.Struct(">HI")
_MAX_TUNNEL_RETRIES = 10


class MessageKind(IntEnum):
    """Kinds of control messages."""

    Version = 0
    UDPTunnel = 1
    Authenticate = 2
    Ping = 3
    Reject = 4
    ServerSync = 5
    ChannelRemove = 6
    ChannelState = 7
    UserRemove = 8
    UserState = 9
    BanList = 10
    TextMessage = 11
    PermissionDenied = 12
    Acl = 13
    QueryUsers = 14
    CryptSetup = 15
    ContextActionModify = 16
    ContextAction = 17
    UserList = 18
    VoiceTarget = 19
    PermissionQuery = 20
    CodecVersion = 21
    UserStats = 22
    RequestBlob = 23
    ServerConfig = 24
    SuggestConfig = 25

    @classmethod
    def _missing_(cls, value):
        raise UnexpectedMessageKind(value)

    def __str__(self) -> str:
        return "ACL" if self is MessageKind.Acl else self.name

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


def message_to_bytes(kind: MessageKind, payload: bytes) -> bytes:
    """Frame a serialized message with its kind and length."""
    return _HEADER.pack(int(kind), len(payload)) + bytes(payload)


async def _read_frame(reader: asyncio.StreamReader) -> tuple[int, bytes]:
    kind = struct.unpack(">H", await reader.readexactly(2))[0]
    size = struct.unpack(">I", await reader.readexactly(4))[0]
    return kind, await reader.readexactly(size)


async def read_message(reader: asyncio.StreamReader) -> tuple[MessageKind, bytes]:
    """Read one framed message; raise UnexpectedMessageKind for an unknown kind."""
    kind, payload = await _read_frame(reader)
    return MessageKind(kind), payload


async def expected_message(kind: MessageKind, reader: asyncio.StreamReader, retry: int = 0) -> bytes:
    """Read the payload of a message of the given kind.

    Tunnelled voice frames that arrive first are dropped, up to a limit.
    """
    while True:
        received, payload = await _read_frame(reader)
        if received == kind:
            return payload
        if received == MessageKind.UDPTunnel and retry < _MAX_TUNNEL_RETRIES:
            retry += 1
            continue
        raise UnexpectedMessageKind(received)


async def send_message(kind: MessageKind, payload: bytes, writer) -> None:
    """Write a framed message and flush the writer."""
    writer.write(message_to_bytes(kind, payload))
    await writer.drain()