import pytest

from msgwire import integers
from msgwire.types import (
    MINT8,
    MINT16,
    MINT32,
    MINT64,
    MUINT8,
    MUINT16,
    MUINT32,
    MUINT64,
)


@pytest.mark.parametrize(
    "put, get, prefix, size, value",
    [
        (integers.put_mint64, integers.get_mint64, MINT64, 9, -1234567890123456789),
        (integers.put_mint32, integers.get_mint32, MINT32, 5, -123456789),
        (integers.put_mint16, integers.get_mint16, MINT16, 3, -12345),
        (integers.put_mint8, integers.get_mint8, MINT8, 2, -100),
        (integers.put_muint64, integers.get_muint64, MUINT64, 9, 1234567890123456789),
        (integers.put_muint32, integers.get_muint32, MUINT32, 5, 123456789),
        (integers.put_muint16, integers.get_muint16, MUINT16, 3, 12345),
        (integers.put_muint8, integers.get_muint8, MUINT8, 2, 200),
    ],
)
def test_round_trip(put, get, prefix, size, value):
    encoded = put(value)
    assert len(encoded) == size
    assert encoded[0] == prefix
    assert get(encoded) == value


@pytest.mark.parametrize(
    "put, get, lo, hi",
    [
        (integers.put_mint64, integers.get_mint64, -(2**63), 2**63 - 1),
        (integers.put_mint32, integers.get_mint32, -(2**31), 2**31 - 1),
        (integers.put_mint16, integers.get_mint16, -(2**15), 2**15 - 1),
        (integers.put_mint8, integers.get_mint8, -(2**7), 2**7 - 1),
        (integers.put_muint64, integers.get_muint64, 0, 2**64 - 1),
        (integers.put_muint32, integers.get_muint32, 0, 2**32 - 1),
        (integers.put_muint16, integers.get_muint16, 0, 2**16 - 1),
        (integers.put_muint8, integers.get_muint8, 0, 2**8 - 1),
    ],
)
def test_extremes_round_trip(put, get, lo, hi):
    assert get(put(lo)) == lo
    assert get(put(hi)) == hi


def test_big_endian_layout():
    assert integers.put_muint16(12345)[1:] == (12345).to_bytes(2, "big")
    assert integers.put_mint32(-123456789)[1:] == (-123456789).to_bytes(4, "big", signed=True)


def test_signed_and_unsigned_share_bits():
    encoded = integers.put_mint8(-1)
    assert encoded == bytes([MINT8, 0xFF])
    assert integers.get_muint8(encoded) == 255


def test_unix_round_trip():
    encoded = integers.put_unix(1609459200, 123456789)
    assert len(encoded) == 12
    assert integers.get_unix(encoded) == (1609459200, 123456789)


def test_unix_negative_seconds():
    assert integers.get_unix(integers.put_unix(-5, 7)) == (-5, 7)


def test_prefixes():
    assert integers.prefix_u8(0x01, 200) == bytes([0x01, 200])
    assert integers.prefix_u16(0x01, 12345) == bytes([0x01]) + (12345).to_bytes(2, "big")
    assert integers.prefix_u32(0x02, 123456789) == bytes([0x02]) + (123456789).to_bytes(4, "big")
    assert integers.prefix_u64(0x03, 1234567890123456789) == bytes([0x03]) + (
        1234567890123456789
    ).to_bytes(8, "big")


def test_getters_ignore_the_prefix_byte():
    assert integers.get_mint16(bytes([0x00, 0x01, 0x02])) == 258
    assert integers.get_muint16(bytes([0xFF, 0x01, 0x02])) == 258
    assert integers.get_mint8(bytes([0x00, 0xFE])) == -2