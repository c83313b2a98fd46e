"""MessagePack wire types, prefix bytes and the per-prefix layout table."""

from __future__ import annotations

from enum import IntEnum
from typing import NamedTuple


class Type(IntEnum):
    """A MessagePack wire type, including the built-in extension pseudo-types."""

    INVALID = 0
    STR = 1
    BIN = 2
    MAP = 3
    ARRAY = 4
    FLOAT64 = 5
    FLOAT32 = 6
    BOOL = 7
    INT = 8
    UINT = 9
    NIL = 10
    DURATION = 11
    EXTENSION = 12
    COMPLEX64 = 13
    COMPLEX128 = 14
    TIME = 15

    def __str__(self) -> str:
        return _TYPE_NAMES.get(self, "<invalid>")


_TYPE_NAMES = {
    Type.STR: "str",
    Type.BIN: "bin",
    Type.MAP: "map",
    Type.ARRAY: "array",
    Type.FLOAT64: "float64",
    Type.FLOAT32: "float32",
    Type.BOOL: "bool",
    Type.UINT: "uint",
    Type.INT: "int",
    Type.EXTENSION: "ext",
    Type.NIL: "nil",
}

# Prefix bytes.
MNIL = 0xC0
MFALSE = 0xC2
MTRUE = 0xC3
MBIN8 = 0xC4
MBIN16 = 0xC5
MBIN32 = 0xC6
MEXT8 = 0xC7
MEXT16 = 0xC8
MEXT32 = 0xC9
MFLOAT32 = 0xCA
MFLOAT64 = 0xCB
MUINT8 = 0xCC
MUINT16 = 0xCD
MUINT32 = 0xCE
MUINT64 = 0xCF
MINT8 = 0xD0
MINT16 = 0xD1
MINT32 = 0xD2
MINT64 = 0xD3
MFIXEXT1 = 0xD4
MFIXEXT2 = 0xD5
MFIXEXT4 = 0xD6
MFIXEXT8 = 0xD7
MFIXEXT16 = 0xD8
MSTR8 = 0xD9
MSTR16 = 0xDA
MSTR32 = 0xDB
MARRAY16 = 0xDC
MARRAY32 = 0xDD
MMAP16 = 0xDE
MMAP32 = 0xDF

# Meaning of a spec's ``extra`` field: a non-negative value is the number of
# objects that follow the prefix; a negative value names how the size is read.
CONST_SIZE = 0
EXTRA8 = -1
EXTRA16 = -2
EXTRA32 = -3
MAP16V = -4
MAP32V = -5
ARRAY16V = -6
ARRAY32V = -7


class _ByteSpec(NamedTuple):
    typ: Type
    size: int
    extra: int


def _build_specs() -> tuple[_ByteSpec, ...]:
    specs = [_ByteSpec(Type.INVALID, 0, CONST_SIZE)] * 256
    for lead in range(0x00, 0x80):
        specs[lead] = _ByteSpec(Type.INT, 1, CONST_SIZE)
    for lead in range(0x80, 0x90):
        specs[lead] = _ByteSpec(Type.MAP, 1, 2 * (lead & 0x0F))
    for lead in range(0x90, 0xA0):
        specs[lead] = _ByteSpec(Type.ARRAY, 1, lead & 0x0F)
    for lead in range(0xA0, 0xC0):
        specs[lead] = _ByteSpec(Type.STR, 1 + (lead & 0x1F), CONST_SIZE)
    for lead in range(0xE0, 0x100):
        specs[lead] = _ByteSpec(Type.INT, 1, CONST_SIZE)
    fixed = {
        MNIL: (Type.NIL, 1, CONST_SIZE),
        MFALSE: (Type.BOOL, 1, CONST_SIZE),
        MTRUE: (Type.BOOL, 1, CONST_SIZE),
        MBIN8: (Type.BIN, 2, EXTRA8),
        MBIN16: (Type.BIN, 3, EXTRA16),
        MBIN32: (Type.BIN, 5, EXTRA32),
        MEXT8: (Type.EXTENSION, 3, EXTRA8),
        MEXT16: (Type.EXTENSION, 4, EXTRA16),
        MEXT32: (Type.EXTENSION, 6, EXTRA32),
        MFLOAT32: (Type.FLOAT32, 5, CONST_SIZE),
        MFLOAT64: (Type.FLOAT64, 9, CONST_SIZE),
        MUINT8: (Type.UINT, 2, CONST_SIZE),
        MUINT16: (Type.UINT, 3, CONST_SIZE),
        MUINT32: (Type.UINT, 5, CONST_SIZE),
        MUINT64: (Type.UINT, 9, CONST_SIZE),
        MINT8: (Type.INT, 2, CONST_SIZE),
        MINT16: (Type.INT, 3, CONST_SIZE),
        MINT32: (Type.INT, 5, CONST_SIZE),
        MINT64: (Type.INT, 9, CONST_SIZE),
        MFIXEXT1: (Type.EXTENSION, 3, CONST_SIZE),
        MFIXEXT2: (Type.EXTENSION, 4, CONST_SIZE),
        MFIXEXT4: (Type.EXTENSION, 6, CONST_SIZE),
        MFIXEXT8: (Type.EXTENSION, 10, CONST_SIZE),
        MFIXEXT16: (Type.EXTENSION, 18, CONST_SIZE),
        MSTR8: (Type.STR, 2, EXTRA8),
        MSTR16: (Type.STR, 3, EXTRA16),
        MSTR32: (Type.STR, 5, EXTRA32),
        MARRAY16: (Type.ARRAY, 3, ARRAY16V),
        MARRAY32: (Type.ARRAY, 5, ARRAY32V),
        MMAP16: (Type.MAP, 3, MAP16V),
        MMAP32: (Type.MAP, 5, MAP32V),
    }
    for lead, spec in fixed.items():
        specs[lead] = _ByteSpec(*spec)
    return tuple(specs)


BYTE_SPECS = _build_specs()
"""Layout of every prefix byte: wire type, prefix size and extra information."""


def get_type(lead: int) -> Type:
    """Return the wire type announced by a prefix byte."""
    return BYTE_SPECS[lead & 0xFF].typ