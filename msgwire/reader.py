"""A buffered reader that decodes MessagePack values from a binary stream."""

from __future__ import annotations

import struct
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import BinaryIO

from .errors import (
    ArrayError,
    FatalError,
    InvalidPrefixError,
    IntOverflow,
    MsgpTypeError,
    ShortBytesError,
    UintBelowZero,
    UintOverflow,
    bad_prefix,
)
from .extension import (
    COMPLEX64_EXTENSION,
    COMPLEX128_EXTENSION,
    TIME_EXTENSION,
    Extension,
    ExtensionTypeError,
)
from .integers import (
    get_mint8,
    get_mint16,
    get_mint32,
    get_mint64,
    get_muint8,
    get_muint16,
    get_muint32,
    get_muint64,
    get_unix,
)
from .types import (
    ARRAY16V,
    ARRAY32V,
    BYTE_SPECS,
    EXTRA8,
    EXTRA16,
    EXTRA32,
    MAP16V,
    MAP32V,
    MARRAY16,
    MARRAY32,
    MBIN8,
    MBIN16,
    MBIN32,
    MEXT8,
    MEXT16,
    MEXT32,
    MFALSE,
    MFIXEXT1,
    MFIXEXT2,
    MFIXEXT4,
    MFIXEXT8,
    MFIXEXT16,
    MFLOAT32,
    MFLOAT64,
    MINT8,
    MINT16,
    MINT32,
    MINT64,
    MMAP16,
    MMAP32,
    MNIL,
    MSTR8,
    MSTR16,
    MSTR32,
    MTRUE,
    MUINT8,
    MUINT16,
    MUINT32,
    MUINT64,
    Type,
    get_type,
)

DEFAULT_BUFFER_SIZE = 4096
"""Number of bytes requested from the stream per refill by default."""

_MAX_INT64 = (1 << 63) - 1

_SIGNED: dict[int, tuple[int, Callable[[bytes], int]]] = {
    MINT8: (2, get_mint8),
    MINT16: (3, get_mint16),
    MINT32: (5, get_mint32),
    MINT64: (9, get_mint64),
}
_UNSIGNED: dict[int, tuple[int, Callable[[bytes], int]]] = {
    MUINT8: (2, get_muint8),
    MUINT16: (3, get_muint16),
    MUINT32: (5, get_muint32),
    MUINT64: (9, get_muint64),
}
_FIXEXT_SIZES = {MFIXEXT1: 1, MFIXEXT2: 2, MFIXEXT4: 4, MFIXEXT8: 8, MFIXEXT16: 16}
_EXT_PSEUDO_TYPES = {
    COMPLEX64_EXTENSION: Type.COMPLEX64,
    COMPLEX128_EXTENSION: Type.COMPLEX128,
    TIME_EXTENSION: Type.TIME,
}
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_FLOAT32 = struct.Struct(">f")
_FLOAT64 = struct.Struct(">d")


def _int8(b: int) -> int:
    return b - 256 if b > 127 else b


def _narrow_int(value: int, bits: int) -> int:
    limit = 1 << (bits - 1)
    if value >= limit or value < -limit:
        raise IntOverflow(value, bits)
    return value


def _narrow_uint(value: int, bits: int) -> int:
    if value >= 1 << bits:
        raise UintOverflow(value, bits)
    return value


class Reader:
    """Reads MessagePack values from a buffered binary stream.

    Running out of data raises EOFError.
    """

    def __init__(self, stream: BinaryIO, size: int = DEFAULT_BUFFER_SIZE) -> None:
        if size <= 0:
            raise ValueError("buffer size must be positive")
        self._stream = stream
        self._chunk = size
        self._buf = bytearray()
        self._pos = 0

    # -- buffering -------------------------------------------------------

    def _fill(self, n: int) -> None:
        if len(self._buf) - self._pos >= n:
            return
        if self._pos:
            del self._buf[: self._pos]
            self._pos = 0
        while len(self._buf) < n:
            chunk = self._stream.read(max(self._chunk, n - len(self._buf)))
            if not chunk:
                break
            self._buf += chunk

    def _peek(self, n: int) -> bytes:
        """Up to ``n`` bytes without consuming them."""
        self._fill(n)
        return bytes(self._buf[self._pos : self._pos + n])

    def _require(self, n: int) -> bytes:
        """Exactly ``n`` bytes without consuming them."""
        p = self._peek(n)
        if len(p) < n:
            raise EOFError(f"wanted {n} bytes, only {len(p)} available")
        return p

    def _consume(self, n: int) -> None:
        self._pos += n

    def _next(self, n: int) -> bytes:
        p = self._require(n)
        self._pos += n
        return p

    def read(self, n: int) -> bytes:
        """Read up to ``n`` raw bytes; an empty result means end of stream."""
        avail = len(self._buf) - self._pos
        if avail:
            take = min(n, avail)
            return self._next(take)
        return self._stream.read(n) or b""

    def read_full(self, n: int) -> bytes:
        """Read exactly ``n`` raw bytes."""
        return self._next(n)

    def reset(self, stream: BinaryIO) -> None:
        """Discard buffered data and read from ``stream`` from now on."""
        self._stream = stream
        self._buf = bytearray()
        self._pos = 0

    def buffered(self) -> int:
        """Number of bytes currently held in the buffer."""
        return len(self._buf) - self._pos

    # -- structure -------------------------------------------------------

    def _next_size(self) -> tuple[int, int]:
        """Size of the next object's own bytes and the number of child objects."""
        lead = self._require(1)[0]
        spec = BYTE_SPECS[lead]
        size, mode = spec.size, spec.extra
        if size == 0:
            raise InvalidPrefixError(lead)
        if mode >= 0:
            return size, mode
        p = self._require(size)
        if mode == EXTRA8:
            return size + p[1], 0
        if mode == EXTRA16:
            return size + int.from_bytes(p[1:3], "big"), 0
        if mode == EXTRA32:
            return size + int.from_bytes(p[1:5], "big"), 0
        if mode == MAP16V:
            return size, 2 * int.from_bytes(p[1:3], "big")
        if mode == MAP32V:
            return size, 2 * int.from_bytes(p[1:5], "big")
        if mode == ARRAY16V:
            return size, int.from_bytes(p[1:3], "big")
        if mode == ARRAY32V:
            return size, int.from_bytes(p[1:5], "big")
        raise FatalError()

    def copy_next(self, w: BinaryIO) -> int:
        """Copy the next object, undecoded, to ``w``; return the bytes written."""
        size, objects = self._next_size()
        try:
            data = self._next(size)
        except EOFError as exc:
            raise ShortBytesError() from exc
        written = w.write(data)
        if written is None:
            written = len(data)
        if written < size:
            raise OSError("short write")
        for _ in range(objects):
            written += self.copy_next(w)
        return written

    def next_type(self) -> Type:
        """The type of the next object, without consuming it."""
        lead = self._require(1)[0]
        t = get_type(lead)
        if t is Type.INVALID:
            raise InvalidPrefixError(lead)
        if t is Type.EXTENSION:
            return _EXT_PSEUDO_TYPES.get(self.peek_extension_type(), t)
        return t

    def is_nil(self) -> bool:
        """Whether the next byte is a MessagePack nil."""
        p = self._peek(1)
        return len(p) == 1 and p[0] == MNIL

    def skip(self) -> None:
        """Skip the next object, including every element of a map or array."""
        size, objects = self._next_size()
        self._next(size)
        for _ in range(objects):
            self.skip()

    def read_map_header(self) -> int:
        """Read a map header and return the number of key/value pairs."""
        lead = self._require(1)[0]
        if lead & 0xF0 == 0x80:
            self._consume(1)
            return lead & 0x0F
        if lead == MMAP16:
            return int.from_bytes(self._next(3)[1:], "big")
        if lead == MMAP32:
            return int.from_bytes(self._next(5)[1:], "big")
        raise bad_prefix(Type.MAP, lead)

    def read_map_key(self) -> bytes:
        """Read a 'str' or 'bin' map key as bytes."""
        try:
            return self.read_string_as_bytes()
        except MsgpTypeError as err:
            if err.encoded is Type.BIN:
                return self.read_bytes()
            raise

    def read_array_header(self) -> int:
        """Read an array header and return the number of elements."""
        lead = self._require(1)[0]
        if lead & 0xF0 == 0x90:
            self._consume(1)
            return lead & 0x0F
        if lead == MARRAY16:
            return int.from_bytes(self._next(3)[1:], "big")
        if lead == MARRAY32:
            return int.from_bytes(self._next(5)[1:], "big")
        raise bad_prefix(Type.ARRAY, lead)

    # -- scalars ---------------------------------------------------------

    def read_nil(self) -> None:
        """Read a nil."""
        lead = self._require(1)[0]
        if lead != MNIL:
            raise bad_prefix(Type.NIL, lead)
        self._consume(1)

    def read_float64(self) -> float:
        """Read a float64; a float32 on the wire is widened."""
        p = self._peek(9)
        if len(p) < 9:
            if p and p[0] == MFLOAT32:
                return self.read_float32()
            raise EOFError("wanted 9 bytes for a float64")
        if p[0] != MFLOAT64:
            if p[0] == MFLOAT32:
                return self.read_float32()
            raise bad_prefix(Type.FLOAT64, p[0])
        self._consume(9)
        return _FLOAT64.unpack_from(p, 1)[0]

    def read_float32(self) -> float:
        """Read a float32."""
        p = self._require(5)
        if p[0] != MFLOAT32:
            raise bad_prefix(Type.FLOAT32, p[0])
        self._consume(5)
        return _FLOAT32.unpack_from(p, 1)[0]

    def read_bool(self) -> bool:
        """Read a bool."""
        lead = self._require(1)[0]
        if lead == MTRUE:
            value = True
        elif lead == MFALSE:
            value = False
        else:
            raise bad_prefix(Type.BOOL, lead)
        self._consume(1)
        return value

    def read_duration(self) -> int:
        """Read a duration as an integer number of nanoseconds."""
        return self.read_int64()

    def read_int64(self) -> int:
        """Read a signed integer that fits in 64 bits."""
        lead = self._require(1)[0]
        if lead & 0x80 == 0:
            self._consume(1)
            return lead
        if lead & 0xE0 == 0xE0:
            self._consume(1)
            return lead - 256
        if lead in _SIGNED:
            size, get = _SIGNED[lead]
            return get(self._next(size))
        if lead in _UNSIGNED:
            size, get = _UNSIGNED[lead]
            value = get(self._next(size))
            if value > _MAX_INT64:
                raise UintOverflow(value, 64)
            return value
        raise bad_prefix(Type.INT, lead)

    def read_int32(self) -> int:
        """Read a signed integer that fits in 32 bits."""
        return _narrow_int(self.read_int64(), 32)

    def read_int16(self) -> int:
        """Read a signed integer that fits in 16 bits."""
        return _narrow_int(self.read_int64(), 16)

    def read_int8(self) -> int:
        """Read a signed integer that fits in 8 bits."""
        return _narrow_int(self.read_int64(), 8)

    def read_int(self) -> int:
        """Read a signed integer of the platform word size (64 bits)."""
        return self.read_int64()

    def read_uint64(self) -> int:
        """Read an unsigned integer that fits in 64 bits."""
        lead = self._require(1)[0]
        if lead & 0x80 == 0:
            self._consume(1)
            return lead
        if lead in _SIGNED:
            size, get = _SIGNED[lead]
            value = get(self._next(size))
            if value < 0:
                raise UintBelowZero(value)
            return value
        if lead in _UNSIGNED:
            size, get = _UNSIGNED[lead]
            return get(self._next(size))
        if lead & 0xE0 == 0xE0:
            raise UintBelowZero(lead - 256)
        raise bad_prefix(Type.UINT, lead)

    def read_uint32(self) -> int:
        """Read an unsigned integer that fits in 32 bits."""
        return _narrow_uint(self.read_uint64(), 32)

    def read_uint16(self) -> int:
        """Read an unsigned integer that fits in 16 bits."""
        return _narrow_uint(self.read_uint64(), 16)

    def read_uint8(self) -> int:
        """Read an unsigned integer that fits in 8 bits."""
        return _narrow_uint(self.read_uint64(), 8)

    def read_uint(self) -> int:
        """Read an unsigned integer of the platform word size (64 bits)."""
        return self.read_uint64()

    def read_byte(self) -> int:
        """Read an unsigned integer that fits in a byte."""
        return self.read_uint8()

    # -- bin and str -----------------------------------------------------

    def read_bytes_header(self) -> int:
        """Read a 'bin' header and return the payload size."""
        lead = self._require(1)[0]
        if lead == MBIN8:
            return self._next(2)[1]
        if lead == MBIN16:
            return int.from_bytes(self._next(3)[1:], "big")
        if lead == MBIN32:
            return int.from_bytes(self._next(5)[1:], "big")
        raise bad_prefix(Type.BIN, lead)

    def read_bytes(self) -> bytes:
        """Read a 'bin' object."""
        self._require(2)
        return self._next(self.read_bytes_header())

    def read_exact_bytes(self, size: int) -> bytes:
        """Read a 'bin' object that must be exactly ``size`` bytes long."""
        p = self._require(2)
        lead = p[0]
        if lead == MBIN8:
            length, skip = p[1], 2
        elif lead == MBIN16:
            length, skip = int.from_bytes(self._require(3)[1:], "big"), 3
        elif lead == MBIN32:
            length, skip = int.from_bytes(self._require(5)[1:], "big"), 5
        else:
            raise bad_prefix(Type.BIN, lead)
        if length != size:
            raise ArrayError(wanted=size, got=length)
        self._consume(skip)
        return self._next(length)

    def read_string_header(self) -> int:
        """Read a 'str' header and return the payload size."""
        lead = self._require(1)[0]
        if lead & 0xE0 == 0xA0:
            self._consume(1)
            return lead & 0x1F
        if lead == MSTR8:
            return self._next(2)[1]
        if lead == MSTR16:
            return int.from_bytes(self._next(3)[1:], "big")
        if lead == MSTR32:
            return int.from_bytes(self._next(5)[1:], "big")
        raise bad_prefix(Type.STR, lead)

    def read_string_as_bytes(self) -> bytes:
        """Read a 'str' object and return its raw bytes."""
        return self._next(self.read_string_header())

    def read_string(self) -> str:
        """Read a 'str' object; bytes that are not UTF-8 survive as surrogates."""
        return self.read_string_as_bytes().decode("utf-8", "surrogateescape")

    # -- extensions ------------------------------------------------------

    def read_complex64(self) -> complex:
        """Read a complex64 extension."""
        p = self._require(10)
        if p[0] != MFIXEXT8:
            raise bad_prefix(Type.COMPLEX64, p[0])
        if _int8(p[1]) != COMPLEX64_EXTENSION:
            raise ExtensionTypeError(_int8(p[1]), COMPLEX64_EXTENSION)
        real, imag = struct.unpack_from(">ff", p, 2)
        self._consume(10)
        return complex(real, imag)

    def read_complex128(self) -> complex:
        """Read a complex128 extension."""
        p = self._require(18)
        if p[0] != MFIXEXT16:
            raise bad_prefix(Type.COMPLEX128, p[0])
        if _int8(p[1]) != COMPLEX128_EXTENSION:
            raise ExtensionTypeError(_int8(p[1]), COMPLEX128_EXTENSION)
        real, imag = struct.unpack_from(">dd", p, 2)
        self._consume(18)
        return complex(real, imag)

    def read_time(self) -> datetime:
        """Read a time extension as an aware datetime in the local zone.

        Precision below a microsecond is dropped.
        """
        p = self._require(15)
        if p[0] != MEXT8 or p[1] != 12:
            raise bad_prefix(Type.TIME, p[0])
        if _int8(p[2]) != TIME_EXTENSION:
            raise ExtensionTypeError(_int8(p[2]), TIME_EXTENSION)
        sec, nsec = get_unix(p[3:])
        self._consume(15)
        moment = _EPOCH + timedelta(seconds=sec, microseconds=nsec // 1000)
        return moment.astimezone()

    def _peek_extension_header(self) -> tuple[int, int, int]:
        """Return (prefix length, payload length, extension type)."""
        p = self._require(2)
        lead = p[0]
        if lead in _FIXEXT_SIZES:
            return 2, _FIXEXT_SIZES[lead], _int8(p[1])
        if lead == MEXT8:
            p = self._require(3)
            return 3, p[1], _int8(p[2])
        if lead == MEXT16:
            p = self._require(4)
            return 4, int.from_bytes(p[1:3], "big"), _int8(p[3])
        if lead == MEXT32:
            p = self._require(6)
            return 6, int.from_bytes(p[1:5], "big"), _int8(p[5])
        raise bad_prefix(Type.EXTENSION, lead)

    def peek_extension_type(self) -> int:
        """The type of the extension that comes next, without consuming it."""
        return self._peek_extension_header()[2]

    def read_extension(self, e: Extension) -> None:
        """Read the next extension into ``e``; its type must match ``e``'s."""
        offset, length, ext_type = self._peek_extension_header()
        expected = e.extension_type()
        if ext_type != expected:
            raise ExtensionTypeError(ext_type, expected)
        p = self._require(offset + length)
        e.unmarshal_binary(p[offset:])
        self._consume(offset + length)

    def read_extension_raw(self) -> tuple[int, bytes]:
        """Read the next extension and return its type and payload."""
        offset, length, ext_type = self._peek_extension_header()
        payload = self._next(offset + length)
        return ext_type, payload[offset:]