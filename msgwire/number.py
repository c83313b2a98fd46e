"""A number that holds an int64, a uint64, a float32 or a float64."""

from __future__ import annotations

import io
import math
import struct
from collections.abc import Callable
from decimal import Decimal
from typing import Any, BinaryIO

from .errors import MsgpError, MsgpTypeError, ShortBytesError
from .extension import (
    COMPLEX64_EXTENSION,
    COMPLEX128_EXTENSION,
    TIME_EXTENSION,
    peek_extension,
)
from .integers import (
    put_mint8,
    put_mint16,
    put_mint32,
    put_mint64,
    put_muint8,
    put_muint16,
    put_muint32,
    put_muint64,
)
from .reader import Reader
from .types import MFLOAT32, MFLOAT64, Type, get_type

FLOAT32_SIZE = 5
FLOAT64_SIZE = 9
INT64_SIZE = 9
UINT64_SIZE = 9

_MASK64 = (1 << 64) - 1
_EXT_TYPES = {
    COMPLEX64_EXTENSION: Type.COMPLEX64,
    COMPLEX128_EXTENSION: Type.COMPLEX128,
    TIME_EXTENSION: Type.TIME,
}


def _encode_int64(i: int) -> bytes:
    if i >= 0:
        if i <= 0x7F:
            return bytes([i])
        if i <= 0x7FFF:
            return put_mint16(i)
        if i <= 0x7FFFFFFF:
            return put_mint32(i)
        return put_mint64(i)
    if i >= -32:
        return bytes([i & 0xFF])
    if i >= -0x80:
        return put_mint8(i)
    if i >= -0x8000:
        return put_mint16(i)
    if i >= -0x80000000:
        return put_mint32(i)
    return put_mint64(i)


def _encode_uint64(u: int) -> bytes:
    if u <= 0x7F:
        return bytes([u])
    if u <= 0xFF:
        return put_muint8(u)
    if u <= 0xFFFF:
        return put_muint16(u)
    if u <= 0xFFFFFFFF:
        return put_muint32(u)
    return put_muint64(u)


def _format_float(f: float) -> str:
    """Shortest decimal form without an exponent."""
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "+Inf" if f > 0 else "-Inf"
    text = format(Decimal(repr(f)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _peek_type(b: bytes) -> Type:
    if not b:
        return Type.INVALID
    typ = get_type(b[0])
    if typ is Type.EXTENSION:
        try:
            return _EXT_TYPES.get(peek_extension(b), typ)
        except MsgpError:
            return Type.INVALID
    return typ


def _read_from_bytes(b: bytes, read: Callable[[Reader], Any]) -> tuple[Any, bytes]:
    stream = io.BytesIO(b)
    reader = Reader(stream)
    try:
        value = read(reader)
    except EOFError as exc:
        raise ShortBytesError() from exc
    consumed = stream.tell() - reader.buffered()
    return value, b[consumed:]


class Number:
    """An int64, uint64, float32 or float64, decodable from any numeric type.

    The zero value is int 0. Equality compares both the kind and the value.
    """

    __slots__ = ("_bits", "_typ")

    def __init__(self) -> None:
        self._bits = 0
        self._typ = Type.INVALID

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return (self._typ, self._bits) == (other._typ, other._bits)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Number({self.type().name}, {self})"

    def as_int(self, i: int) -> None:
        """Set the number to a signed 64-bit integer."""
        if not -(1 << 63) <= i < (1 << 63):
            raise OverflowError(f"{i} does not fit in int64")
        if i == 0:
            self._typ = Type.INVALID
            self._bits = 0
            return
        self._typ = Type.INT
        self._bits = i & _MASK64

    def as_uint(self, u: int) -> None:
        """Set the number to an unsigned 64-bit integer."""
        if not 0 <= u <= _MASK64:
            raise OverflowError(f"{u} does not fit in uint64")
        self._typ = Type.UINT
        self._bits = u

    def as_float32(self, f: float) -> None:
        """Set the number to a float32."""
        self._typ = Type.FLOAT32
        self._bits = struct.unpack(">I", struct.pack(">f", f))[0]

    def as_float64(self, f: float) -> None:
        """Set the number to a float64."""
        self._typ = Type.FLOAT64
        self._bits = struct.unpack(">Q", struct.pack(">d", f))[0]

    def int(self) -> tuple[int, bool]:
        """The value as an int64, and whether that is its kind."""
        value = self._bits
        if value >= 1 << 63:
            value -= 1 << 64
        return value, self._typ in (Type.INT, Type.INVALID)

    def uint(self) -> tuple[int, bool]:
        """The value as a uint64, and whether that is its kind."""
        return self._bits, self._typ is Type.UINT

    def float(self) -> tuple[float, bool]:
        """The value as a float, and whether it is a float32 or float64."""
        if self._typ is Type.FLOAT32:
            return struct.unpack(">f", self._bits.to_bytes(4, "big"))[0], True
        if self._typ is Type.FLOAT64:
            return struct.unpack(">d", self._bits.to_bytes(8, "big"))[0], True
        return 0.0, False

    def type(self) -> Type:
        """One of Type.FLOAT64, Type.FLOAT32, Type.UINT or Type.INT."""
        if self._typ is Type.INVALID:
            return Type.INT
        return self._typ

    def decode_msg(self, r: Reader) -> None:
        """Read the number from ``r``."""
        typ = r.next_type()
        if typ is Type.FLOAT32:
            self.as_float32(r.read_float32())
        elif typ is Type.FLOAT64:
            self.as_float64(r.read_float64())
        elif typ is Type.INT:
            self.as_int(r.read_int64())
        elif typ is Type.UINT:
            self.as_uint(r.read_uint64())
        else:
            raise MsgpTypeError(method=Type.INT, encoded=typ)

    def unmarshal_msg(self, b: bytes) -> bytes:
        """Decode the number from the start of ``b`` and return the rest."""
        typ = _peek_type(b)
        if typ is Type.INT:
            value, rest = _read_from_bytes(b, Reader.read_int64)
            self.as_int(value)
        elif typ is Type.UINT:
            value, rest = _read_from_bytes(b, Reader.read_uint64)
            self.as_uint(value)
        elif typ is Type.FLOAT64:
            value, rest = _read_from_bytes(b, Reader.read_float64)
            self.as_float64(value)
        elif typ is Type.FLOAT32:
            value, rest = _read_from_bytes(b, Reader.read_float32)
            self.as_float32(value)
        else:
            raise MsgpTypeError(method=Type.INT, encoded=typ)
        return rest

    def _encode(self) -> bytes:
        if self._typ is Type.INT:
            return _encode_int64(self.int()[0])
        if self._typ is Type.UINT:
            return _encode_uint64(self._bits)
        if self._typ is Type.FLOAT64:
            return bytes([MFLOAT64]) + self._bits.to_bytes(8, "big")
        if self._typ is Type.FLOAT32:
            return bytes([MFLOAT32]) + self._bits.to_bytes(4, "big")
        return _encode_int64(0)

    def marshal_msg(self, b: bytes) -> bytes:
        """Return ``b`` followed by the encoded number."""
        return bytes(b) + self._encode()

    def encode_msg(self, w: BinaryIO) -> None:
        """Write the encoded number to the binary stream ``w``."""
        w.write(self._encode())

    def msgsize(self) -> int:
        """An upper bound on the encoded size."""
        if self._typ is Type.FLOAT32:
            return FLOAT32_SIZE
        if self._typ is Type.FLOAT64:
            return FLOAT64_SIZE
        if self._typ is Type.INT:
            return INT64_SIZE
        if self._typ is Type.UINT:
            return UINT64_SIZE
        return 1

    def to_json(self) -> bytes:
        """The number as JSON text."""
        return str(self).encode("ascii")

    def __str__(self) -> str:
        if self._typ is Type.INVALID:
            return "0"
        if self._typ in (Type.FLOAT32, Type.FLOAT64):
            return _format_float(self.float()[0])
        if self._typ is Type.INT:
            return str(self.int()[0])
        return str(self._bits)