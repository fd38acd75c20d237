"""Mumble's variable-length integer format."""

from __future__ import annotations

from typing import BinaryIO

MASK64 = 0xFFFF_FFFF_FFFF_FFFF


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if data is None or len(data) < count:
        raise EOFError("unexpected end of varint")
    return data


def _read_be(stream: BinaryIO, count: int) -> int:
    return int.from_bytes(_read_exact(stream, count), "big")


def read_varint(stream: BinaryIO) -> int:
    """Read one varint from a binary stream and return it as an unsigned 64-bit value."""
    b0 = _read_exact(stream, 1)[0]
    if b0 & 0b1111_1100 == 0b1111_1000:
        return ~read_varint(stream) & MASK64
    if b0 & 0b1111_1100 == 0b1111_1100:
        return ~(b0 & 0x03) & MASK64
    if not b0 & 0b1000_0000:
        return b0 & 0b0111_1111
    if not b0 & 0b0100_0000:
        return (b0 & 0b0011_1111) << 8 | _read_be(stream, 1)
    if not b0 & 0b0010_0000:
        return (b0 & 0b0001_1111) << 16 | _read_be(stream, 2)
    if not b0 & 0b0001_0000:
        return (b0 & 0x0F) << 24 | _read_be(stream, 3)
    if not b0 & 0b0000_0100:
        return _read_be(stream, 4)
    return _read_be(stream, 8)


def encode_varint(value: int) -> bytes:
    """Encode an unsigned 64-bit value as a varint."""
    if not 0 <= value <= MASK64:
        raise ValueError(f"varint value out of range: {value}")

    if value & 0xFFFF_FFFF_FFFF_FFFC == 0xFFFF_FFFF_FFFF_FFFC:
        return bytes([0b1111_1100 | (~value & 0x03)])
    if value & 0x8000_0000_0000_0000:
        return b"\xf8" + encode_varint(~value & MASK64)
    if value > 0xFFFF_FFFF:
        return b"\xf4" + value.to_bytes(8, "big")
    if value > 0x0FFF_FFFF:
        return b"\xf0" + value.to_bytes(4, "big")
    if value > 0x001F_FFFF:
        return bytes([0b1110_0000 | value >> 24]) + (value & 0xFF_FFFF).to_bytes(3, "big")
    if value > 0x0000_3FFF:
        return bytes([0b1100_0000 | value >> 16]) + (value & 0xFFFF).to_bytes(2, "big")
    if value > 0x0000_007F:
        return bytes([0b1000_0000 | value >> 8, value & 0xFF])
    return bytes([value])