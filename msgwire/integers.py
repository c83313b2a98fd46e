"""Big-endian integer encoding for MessagePack prefixed values."""

from __future__ import annotations

import struct

from .types import (
    MINT8,
    MINT16,
    MINT32,
    MINT64,
    MUINT8,
    MUINT16,
    MUINT32,
    MUINT64,
)

_U8 = struct.Struct(">BB")
_U16 = struct.Struct(">BH")
_U32 = struct.Struct(">BI")
_U64 = struct.Struct(">BQ")
_I8 = struct.Struct(">Bb")
_I16 = struct.Struct(">Bh")
_I32 = struct.Struct(">Bi")
_I64 = struct.Struct(">Bq")
_UNIX = struct.Struct(">qi")
_UNIX_PUT = struct.Struct(">QI")


def put_mint64(i: int) -> bytes:
    """Encode ``i`` as an int64 with its prefix byte."""
    return _U64.pack(MINT64, i & 0xFFFFFFFFFFFFFFFF)


def get_mint64(b: bytes) -> int:
    """Decode the int64 that follows the prefix byte in ``b``."""
    return _I64.unpack_from(b)[1]


def put_mint32(i: int) -> bytes:
    """Encode ``i`` as an int32 with its prefix byte."""
    return _U32.pack(MINT32, i & 0xFFFFFFFF)


def get_mint32(b: bytes) -> int:
    """Decode the int32 that follows the prefix byte in ``b``."""
    return _I32.unpack_from(b)[1]


def put_mint16(i: int) -> bytes:
    """Encode ``i`` as an int16 with its prefix byte."""
    return _U16.pack(MINT16, i & 0xFFFF)


def get_mint16(b: bytes) -> int:
    """Decode the int16 that follows the prefix byte in ``b``."""
    return _I16.unpack_from(b)[1]


def put_mint8(i: int) -> bytes:
    """Encode ``i`` as an int8 with its prefix byte."""
    return _U8.pack(MINT8, i & 0xFF)


def get_mint8(b: bytes) -> int:
    """Decode the int8 that follows the prefix byte in ``b``."""
    return _I8.unpack_from(b)[1]


def put_muint64(u: int) -> bytes:
    """Encode ``u`` as a uint64 with its prefix byte."""
    return _U64.pack(MUINT64, u & 0xFFFFFFFFFFFFFFFF)


def get_muint64(b: bytes) -> int:
    """Decode the uint64 that follows the prefix byte in ``b``."""
    return _U64.unpack_from(b)[1]


def put_muint32(u: int) -> bytes:
    """Encode ``u`` as a uint32 with its prefix byte."""
    return _U32.pack(MUINT32, u & 0xFFFFFFFF)


def get_muint32(b: bytes) -> int:
    """Decode the uint32 that follows the prefix byte in ``b``."""
    return _U32.unpack_from(b)[1]


def put_muint16(u: int) -> bytes:
    """Encode ``u`` as a uint16 with its prefix byte."""
    return _U16.pack(MUINT16, u & 0xFFFF)


def get_muint16(b: bytes) -> int:
    """Decode the uint16 that follows the prefix byte in ``b``."""
    return _U16.unpack_from(b)[1]


def put_muint8(u: int) -> bytes:
    """Encode ``u`` as a uint8 with its prefix byte."""
    return _U8.pack(MUINT8, u & 0xFF)


def get_muint8(b: bytes) -> int:
    """Decode the uint8 that follows the prefix byte in ``b``."""
    return _U8.unpack_from(b)[1]


def get_unix(b: bytes) -> tuple[int, int]:
    """Decode seconds (int64) and nanoseconds (int32) from 12 bytes."""
    sec, nsec = _UNIX.unpack_from(b)
    return sec, nsec


def put_unix(sec: int, nsec: int) -> bytes:
    """Encode seconds (int64) and nanoseconds (int32) as 12 bytes."""
    return _UNIX_PUT.pack(sec & 0xFFFFFFFFFFFFFFFF, nsec & 0xFFFFFFFF)


def prefix_u8(pre: int, sz: int) -> bytes:
    """A prefix byte followed by a uint8."""
    return _U8.pack(pre & 0xFF, sz & 0xFF)


def prefix_u16(pre: int, sz: int) -> bytes:
    """A prefix byte followed by a big-endian uint16."""
    return _U16.pack(pre & 0xFF, sz & 0xFFFF)


def prefix_u32(pre: int, sz: int) -> bytes:
    """A prefix byte followed by a big-endian uint32."""
    return _U32.pack(pre & 0xFF, sz & 0xFFFFFFFF)


def prefix_u64(pre: int, sz: int) -> bytes:
    """A prefix byte followed by a big-endian uint64."""
    return _U64.pack(pre & 0xFF, sz & 0xFFFFFFFFFFFFFFFF)