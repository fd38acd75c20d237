import io

import pytest

from zumble.varint import MASK64, encode_varint, read_varint

BOUNDARY_VALUES = [
    0,
    1,
    0x7F,
    0x80,
    0x3FFF,
    0x4000,
    0x1F_FFFF,
    0x20_0000,
    0x0FFF_FFFF,
    0x1000_0000,
    0xFFFF_FFFF,
    0x1_0000_0000,
    0x7FFF_FFFF_FFFF_FFFF,
    0x8000_0000_0000_0000,
    MASK64 - 5,
    MASK64 - 3,
    MASK64 - 2,
    MASK64,
]


@pytest.mark.parametrize("value", BOUNDARY_VALUES)
def test_round_trip(value):
    encoded = encode_varint(value)
    stream = io.BytesIO(encoded)
    assert read_varint(stream) == value
    assert stream.read() == b""


def test_pinned_two_byte_form():
    assert encode_varint(0x80) == b"\x80\x80"


def test_pinned_small_negative_form():
    assert encode_varint(MASK64) == b"\xfc"


def test_pinned_four_byte_prefix_form():
    assert encode_varint(0x1000_0000) == b"\xf0\x10\x00\x00\x00"


def test_single_byte_values_encode_as_themselves():
    for value in (0, 0x42, 0x7F):
        assert encode_varint(value) == bytes([value])


def test_lengths_grow_at_boundaries():
    pairs = [(0x7F, 0x80), (0x3FFF, 0x4000), (0x1F_FFFF, 0x20_0000), (0xFFFF_FFFF, 0x1_0000_0000)]
    for low, high in pairs:
        assert len(encode_varint(low)) < len(encode_varint(high))


def test_negated_form_uses_prefix():
    encoded = encode_varint(MASK64 - 5)
    assert encoded[0] == 0b1111_1000
    assert read_varint(io.BytesIO(encoded)) == MASK64 - 5


def test_sequential_reads():
    stream = io.BytesIO(encode_varint(300) + encode_varint(0xFFFF_FFFF) + encode_varint(7))
    assert [read_varint(stream) for _ in range(3)] == [300, 0xFFFF_FFFF, 7]


def test_truncated_input_raises():
    encoded = encode_varint(0x1_0000_0000)
    with pytest.raises(EOFError):
        read_varint(io.BytesIO(encoded[:-1]))


def test_empty_input_raises():
    with pytest.raises(EOFError):
        read_varint(io.BytesIO(b""))


@pytest.mark.parametrize("value", [-1, MASK64 + 1])
def test_out_of_range_rejected(value):
    with pytest.raises(ValueError):
        encode_varint(value)