import pytest

from gasbench.decoding.reader import ByteCursor
from gasbench.errors import DecodeUnderflow


def test_reads_little_endian_integers():
    cursor = ByteCursor(bytes([0x2A, 0x01, 0x00, 0x00, 0x00]) + b"\xff" * 16)
    assert cursor.read_u8() == 0x2A
    assert cursor.read_u32() == 1
    assert cursor.read_u128() == (1 << 128) - 1
    assert cursor.is_empty()
    assert cursor.bytes_consumed() == 21


def test_bool_uses_low_bit():
    cursor = ByteCursor(b"\x00\x01\x02\x03\xfe")
    assert [cursor.read_bool() for _ in range(5)] == [False, True, False, True, False]


def test_underflow_does_not_advance():
    cursor = ByteCursor(b"\x01\x02\x03")
    cursor.read_u8()
    with pytest.raises(DecodeUnderflow):
        cursor.read_u32()
    assert cursor.idx == 1
    assert cursor.remaining() == 2
    assert cursor.read_bytes(2) == b"\x02\x03"


def test_underflow_is_a_value_error():
    with pytest.raises(ValueError, match="Insufficient bytes"):
        ByteCursor(b"").read_u8()


def test_negative_length_rejected():
    cursor = ByteCursor(b"abc")
    with pytest.raises(ValueError, match="Negative"):
        cursor.read_bytes(-1)


def test_zero_length_read_on_empty_buffer():
    cursor = ByteCursor(b"")
    assert cursor.read_bytes(0) == b""
    assert cursor.is_empty()
