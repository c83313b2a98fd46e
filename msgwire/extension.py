"""MessagePack extension types: registry, encoding and decoding."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import BinaryIO

from .errors import MsgpError, ShortBytesError, bad_prefix
from .types import (
    BYTE_SPECS,
    CONST_SIZE,
    MEXT8,
    MEXT16,
    MEXT32,
    MFIXEXT1,
    MFIXEXT2,
    MFIXEXT4,
    MFIXEXT8,
    MFIXEXT16,
    Type,
)

COMPLEX64_EXTENSION = 3
"""Extension number used for complex64 values."""

COMPLEX128_EXTENSION = 4
"""Extension number used for complex128 values."""

TIME_EXTENSION = 5
"""Extension number used for timestamps."""

_RESERVED = (COMPLEX64_EXTENSION, COMPLEX128_EXTENSION, TIME_EXTENSION)

_FIXED_LEADS = {
    1: MFIXEXT1,
    2: MFIXEXT2,
    4: MFIXEXT4,
    8: MFIXEXT8,
    16: MFIXEXT16,
}
_FIXED_SIZES = {lead: size for size, lead in _FIXED_LEADS.items()}


def _int8(b: int) -> int:
    return b - 256 if b > 127 else b


class Extension(ABC):
    """A type that defines its own binary encoding inside an extension."""

    @abstractmethod
    def extension_type(self) -> int:
        """The int8 identifying the concrete type (negative ones are reserved)."""

    @abstractmethod
    def marshal_binary(self) -> bytes:
        """The encoded payload."""

    @abstractmethod
    def unmarshal_binary(self, data: bytes) -> None:
        """Load the value from an encoded payload."""


@dataclass
class RawExtension(Extension):
    """An extension whose payload is kept as raw bytes."""

    data: bytes = b""
    ext_type: int = 0

    def extension_type(self) -> int:
        return self.ext_type

    def marshal_binary(self) -> bytes:
        return bytes(self.data)

    def unmarshal_binary(self, data: bytes) -> None:
        self.data = bytes(data)


class ExtensionTypeError(MsgpError):
    """The extension type on the wire is not the one expected."""

    def __init__(self, got: int, want: int) -> None:
        super().__init__(got, want)
        self.got = got
        self.want = want

    def __str__(self) -> str:
        return (
            f"msgp: error decoding extension: wanted type {self.want}; "
            f"got type {self.got}"
        )

    def resumable(self) -> bool:
        return True


_registry: dict[int, Callable[[], Extension]] = {}


def register_extension(typ: int, factory: Callable[[], Extension]) -> None:
    """Register a factory that builds a fresh, empty extension of type ``typ``.

    Raises ValueError for the reserved types 3, 4 and 5, and for a type
    that is already registered.
    """
    if typ in _RESERVED:
        raise ValueError(f"msgp: forbidden extension type: {typ}")
    if typ in _registry:
        raise ValueError(
            f"msgp: RegisterExtension() called with typ {typ} more than once"
        )
    _registry[typ] = factory


def registered_extension(typ: int) -> Callable[[], Extension] | None:
    """The factory registered for ``typ``, or None."""
    return _registry.get(typ)


def extension_header(length: int, ext_type: int) -> bytes:
    """The prefix of an extension whose payload is ``length`` bytes long."""
    tb = ext_type & 0xFF
    if length == 0:
        return bytes([MEXT8, 0, tb])
    if length in _FIXED_LEADS:
        return bytes([_FIXED_LEADS[length], tb])
    if length < 0xFF:
        return bytes([MEXT8, length, tb])
    if length < 0xFFFF:
        return bytes([MEXT16]) + length.to_bytes(2, "big") + bytes([tb])
    return bytes([MEXT32]) + (length & 0xFFFFFFFF).to_bytes(4, "big") + bytes([tb])


def append_extension(b: bytes, e: Extension) -> bytes:
    """Return ``b`` followed by the encoding of ``e``."""
    payload = e.marshal_binary()
    return bytes(b) + extension_header(len(payload), e.extension_type()) + payload


def read_extension_bytes(b: bytes, e: Extension) -> bytes:
    """Decode an extension from ``b`` into ``e`` and return the rest of ``b``.

    Raises ShortBytesError, ExtensionTypeError, MsgpTypeError or
    InvalidPrefixError, or whatever ``e.unmarshal_binary`` raises.
    """
    total = len(b)
    if total < 3:
        raise ShortBytesError()
    lead = b[0]
    if lead in _FIXED_SIZES:
        typ = _int8(b[1])
        size = _FIXED_SIZES[lead]
        off = 2
    elif lead == MEXT8:
        size = b[1]
        typ = _int8(b[2])
        off = 3
        if size == 0:
            e.unmarshal_binary(b[3:3])
            return b[3:]
    elif lead == MEXT16:
        if total < 4:
            raise ShortBytesError()
        size = int.from_bytes(b[1:3], "big")
        typ = _int8(b[3])
        off = 4
    elif lead == MEXT32:
        if total < 6:
            raise ShortBytesError()
        size = int.from_bytes(b[1:5], "big")
        typ = _int8(b[5])
        off = 6
    else:
        raise bad_prefix(Type.EXTENSION, lead)

    want = e.extension_type()
    if typ != want:
        raise ExtensionTypeError(typ, want)
    if total - off < size:
        raise ShortBytesError()
    end = off + size
    e.unmarshal_binary(b[off:end])
    return b[end:]


def peek_extension(b: bytes) -> int:
    """Return the extension type of the extension at the start of ``b``."""
    if not b:
        raise ShortBytesError()
    spec = BYTE_SPECS[b[0]]
    if spec.typ is not Type.EXTENSION:
        raise bad_prefix(Type.EXTENSION, b[0])
    if len(b) < spec.size:
        raise ShortBytesError()
    if spec.extra == CONST_SIZE:
        return _int8(b[1])
    return _int8(b[spec.size - 1])


def write_extension(w: BinaryIO, e: Extension) -> None:
    """Write the encoding of ``e`` to the binary stream ``w``."""
    payload = e.marshal_binary()
    w.write(extension_header(len(payload), e.extension_type()))
    w.write(payload)


def write_extension_raw(w: BinaryIO, ext_type: int, payload: bytes) -> None:
    """Write an extension of type ``ext_type`` with ``payload`` to ``w``."""
    w.write(extension_header(len(payload), ext_type))
    w.write(bytes(payload))