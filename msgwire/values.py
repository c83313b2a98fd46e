"""Decoding MessagePack objects into plain Python values."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, BinaryIO

from .errors import FatalError
from .extension import RawExtension, registered_extension
from .reader import Reader
from .types import Type


class Decodable(ABC):
    """An object that knows how to read itself from a Reader."""

    @abstractmethod
    def decode_msg(self, r: Reader) -> None:
        """Load this object from the next value(s) in ``r``."""


def decode(stream: BinaryIO, d: Decodable) -> None:
    """Decode ``d`` from the binary stream ``stream``."""
    d.decode_msg(Reader(stream))


def read_map_str_intf(reader: Reader) -> dict[str, Any]:
    """Read a map whose keys are strings into a new dict."""
    size = reader.read_map_header()
    out: dict[str, Any] = {}
    for _ in range(size):
        key = reader.read_string()
        out[key] = read_intf(reader)
    return out


def _read_extension(reader: Reader) -> Any:
    ext_type = reader.peek_extension_type()
    factory = registered_extension(ext_type)
    if factory is not None:
        ext = factory()
        reader.read_extension(ext)
        return ext
    raw = RawExtension(ext_type=ext_type)
    reader.read_extension(raw)
    return raw


def _read_array(reader: Reader) -> list[Any]:
    size = reader.read_array_header()
    return [read_intf(reader) for _ in range(size)]


_READERS = {
    Type.BOOL: Reader.read_bool,
    Type.INT: Reader.read_int64,
    Type.UINT: Reader.read_uint64,
    Type.BIN: Reader.read_bytes,
    Type.STR: Reader.read_string,
    Type.COMPLEX64: Reader.read_complex64,
    Type.COMPLEX128: Reader.read_complex128,
    Type.TIME: Reader.read_time,
    Type.DURATION: Reader.read_duration,
    Type.EXTENSION: _read_extension,
    Type.MAP: read_map_str_intf,
    Type.NIL: Reader.read_nil,
    Type.FLOAT32: Reader.read_float32,
    Type.FLOAT64: Reader.read_float64,
    Type.ARRAY: _read_array,
}


def read_intf(reader: Reader) -> Any:
    """Read the next object as a plain value.

    Arrays become lists, maps become dicts keyed by str, both integer
    kinds become int, extensions become registered instances or
    RawExtension, and nil becomes None.
    """
    typ = reader.next_type()
    read = _READERS.get(typ)
    if read is None:
        raise FatalError()
    return read(reader)