"""Translating MessagePack into JSON text."""

from __future__ import annotations

import base64
import dataclasses
import io
import json
import math
import struct
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any, BinaryIO

from .errors import FatalError, MsgpTypeError, ShortBytesError
from .extension import Extension, RawExtension, registered_extension
from .reader import Reader
from .types import Type

_FLOAT32 = struct.Struct(">f")
_HEX = b"0123456789abcdef"
_ASCII_ESCAPES = {
    0x5C: b"\\\\",
    0x22: b'\\"',
    0x0A: b"\\n",
    0x0D: b"\\r",
    0x09: b"\\t",
}
_UNSAFE_ASCII = frozenset(b'\\"<>&')
_LINE_SEPARATORS = {b"\xe2\x80\xa8": b"\\u2028", b"\xe2\x80\xa9": b"\\u2029"}


class _Counter:
    """Writes to a binary stream and counts the bytes written."""

    def __init__(self, dst: BinaryIO) -> None:
        self._dst = dst
        self.count = 0

    def write(self, data: bytes) -> None:
        self._dst.write(data)
        self.count += len(data)


def _rune_size(s: bytes, i: int) -> int:
    """Length of the valid UTF-8 sequence at ``s[i]``, or 0 if there is none."""
    lead = s[i]
    if lead < 0xC2:
        return 0
    if lead < 0xE0:
        size = 2
    elif lead < 0xF0:
        size = 3
    elif lead < 0xF5:
        size = 4
    else:
        return 0
    if i + size > len(s):
        return 0
    try:
        s[i : i + size].decode("utf-8")
    except UnicodeDecodeError:
        return 0
    return size


def _quote(s: bytes) -> bytes:
    """Quote raw string bytes as a JSON string that is always valid UTF-8."""
    out = bytearray(b'"')
    i = 0
    n = len(s)
    while i < n:
        b = s[i]
        if b < 0x80:
            if b >= 0x20 and b not in _UNSAFE_ASCII:
                out.append(b)
            elif b in _ASCII_ESCAPES:
                out += _ASCII_ESCAPES[b]
            else:
                out += b"\\u00"
                out.append(_HEX[b >> 4])
                out.append(_HEX[b & 0x0F])
            i += 1
            continue
        size = _rune_size(s, i)
        if size == 0:
            out += b"\\ufffd"
            i += 1
            continue
        rune = bytes(s[i : i + size])
        out += _LINE_SEPARATORS.get(rune, rune)
        i += size
    out += b'"'
    return bytes(out)


def _format_float(f: float, bits: int) -> bytes:
    """Shortest decimal form for the given float width, without an exponent."""
    if math.isnan(f):
        return b"NaN"
    if math.isinf(f):
        return b"+Inf" if f > 0 else b"-Inf"
    if bits == 32:
        text = repr(f)
        for precision in range(1, 10):
            candidate = f"{f:.{precision}g}"
            if _FLOAT32.unpack(_FLOAT32.pack(float(candidate)))[0] == f:
                text = candidate
                break
    else:
        text = repr(f)
    out = format(Decimal(text), "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    return out.encode("ascii")


def _time_json(t: datetime) -> bytes:
    text = (
        f"{t.year:04d}-{t.month:02d}-{t.day:02d}"
        f"T{t.hour:02d}:{t.minute:02d}:{t.second:02d}"
    )
    if t.microsecond:
        text += "." + f"{t.microsecond:06d}".rstrip("0")
    offset = t.utcoffset()
    if not offset:
        text += "Z"
    else:
        total = int(offset.total_seconds())
        sign = "+" if total >= 0 else "-"
        total = abs(total)
        text += f"{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"
    return b'"' + text.encode("ascii") + b'"'


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"{type(value).__qualname__} is not JSON serializable")


def _extension_json(e: Extension) -> bytes:
    to_json = getattr(e, "to_json", None)
    if callable(to_json):
        data = to_json()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    fields = dataclasses.asdict(e) if dataclasses.is_dataclass(e) else vars(e)
    return json.dumps(fields, default=_json_default, separators=(",", ":")).encode()


def _base64_string(data: bytes) -> bytes:
    return b'"' + base64.b64encode(data) + b'"'


class _Converter:
    """Reads objects from a Reader and writes them as JSON."""

    def __init__(self, reader: Reader, out: _Counter, from_bytes: bool) -> None:
        self.reader = reader
        self.out = out
        self.from_bytes = from_bytes
        self._handlers: dict[Type, Callable[[], None]] = {
            Type.STR: self._string,
            Type.BIN: self._bin,
            Type.MAP: self._map,
            Type.ARRAY: self._array,
            Type.FLOAT64: self._float64,
            Type.FLOAT32: self._float32,
            Type.BOOL: self._bool,
            Type.INT: self._int,
            Type.UINT: self._uint,
            Type.NIL: self._nil,
            Type.EXTENSION: self._extension,
            Type.COMPLEX64: self._extension,
            Type.COMPLEX128: self._extension,
            Type.TIME: self._time,
        }

    def value(self) -> None:
        handler = self._handlers.get(self.reader.next_type())
        if handler is None:
            raise FatalError()
        handler()

    def _string(self) -> None:
        self.out.write(_quote(self.reader.read_string_as_bytes()))

    def _bin(self) -> None:
        self.out.write(_base64_string(self.reader.read_bytes()))

    def _map_key(self) -> None:
        if not self.from_bytes:
            key = self.reader.read_map_key()
            if not key:
                raise ShortBytesError()
            self.out.write(_quote(key))
            return
        try:
            key = self.reader.read_string_as_bytes()
        except MsgpTypeError as err:
            if err.encoded is not Type.BIN:
                raise
            self.out.write(_base64_string(self.reader.read_bytes()))
            return
        self.out.write(_quote(key))

    def _map(self) -> None:
        size = self.reader.read_map_header()
        self.out.write(b"{")
        for index in range(size):
            if index:
                self.out.write(b",")
            self._map_key()
            self.out.write(b":")
            self.value()
        self.out.write(b"}")

    def _array(self) -> None:
        size = self.reader.read_array_header()
        self.out.write(b"[")
        for index in range(size):
            if index:
                self.out.write(b",")
            self.value()
        self.out.write(b"]")

    def _float64(self) -> None:
        self.out.write(_format_float(self.reader.read_float64(), 64))

    def _float32(self) -> None:
        self.out.write(_format_float(self.reader.read_float32(), 32))

    def _bool(self) -> None:
        self.out.write(b"true" if self.reader.read_bool() else b"false")

    def _int(self) -> None:
        self.out.write(str(self.reader.read_int64()).encode("ascii"))

    def _uint(self) -> None:
        self.out.write(str(self.reader.read_uint64()).encode("ascii"))

    def _nil(self) -> None:
        self.reader.read_nil()
        self.out.write(b"null")

    def _time(self) -> None:
        self.out.write(_time_json(self.reader.read_time()))

    def _extension(self) -> None:
        ext_type = self.reader.peek_extension_type()
        factory = registered_extension(ext_type)
        if factory is not None:
            ext = factory()
            self.reader.read_extension(ext)
            self.out.write(_extension_json(ext))
            return
        raw = RawExtension(ext_type=ext_type)
        self.reader.read_extension(raw)
        self.out.write(b'{"type":' + str(raw.ext_type).encode("ascii"))
        self.out.write(b',"data":' + _base64_string(raw.data) + b"}")


def reader_to_json(reader: Reader, w: BinaryIO) -> int:
    """Translate every object left in ``reader`` to JSON written to ``w``.

    Returns the number of bytes written.
    """
    out = _Counter(w)
    converter = _Converter(reader, out, from_bytes=False)
    while True:
        try:
            reader.next_type()
        except EOFError:
            if reader.buffered() == 0:
                break
            raise
        converter.value()
    return out.count


def copy_to_json(dst: BinaryIO, src: BinaryIO) -> int:
    """Translate MessagePack read from ``src`` to JSON written to ``dst``.

    Returns the number of bytes written.
    """
    return reader_to_json(Reader(src), dst)


def unmarshal_as_json(w: BinaryIO, msg: bytes) -> int:
    """Translate the MessagePack objects in ``msg`` to JSON written to ``w``.

    Returns the number of bytes written; raises ShortBytesError if ``msg``
    ends inside an object.
    """
    stream = io.BytesIO(bytes(msg))
    reader = Reader(stream)
    out = _Counter(w)
    converter = _Converter(reader, out, from_bytes=True)
    total = len(msg)
    try:
        while reader.buffered() or stream.tell() < total:
            converter.value()
    except EOFError as exc:
        raise ShortBytesError() from exc
    return out.count