"""Errors raised while encoding and decoding MessagePack."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

from .types import Type, get_type


def _add_ctx(ctx: str, add: str) -> str:
    return f"{add}/{ctx}" if ctx else add


class MsgpError(Exception):
    """Base of every error that originates from this package."""

    def resumable(self) -> bool:
        """Whether the stream can still be read after this error."""
        return False

    def with_context(self, ctx: str) -> MsgpError:
        """Return a new error carrying ``ctx``; this error is left unchanged."""
        return WrappedError(self, ctx)


class WrappedError(MsgpError):
    """An arbitrary error annotated with the place it occurred."""

    def __init__(self, cause: BaseException, ctx: str = "") -> None:
        super().__init__(cause, ctx)
        self.cause = cause
        self.ctx = ctx
        self.__cause__ = cause

    def __str__(self) -> str:
        if self.ctx:
            return f"{self.cause} at {self.ctx}"
        return str(self.cause)

    def resumable(self) -> bool:
        return resumable(self.cause)


class _ContextError(MsgpError):
    """An error that records its context in place instead of being wrapped."""

    ctx = ""

    def _describe(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        message = self._describe()
        if self.ctx:
            return f"{message} at {self.ctx}"
        return message

    def with_context(self, ctx: str) -> MsgpError:
        clone = copy.copy(self)
        clone.ctx = _add_ctx(self.ctx, ctx)
        return clone


class ShortBytesError(MsgpError):
    """The data ends before the object being decoded does."""

    def __str__(self) -> str:
        return "msgp: too few bytes left to read object"

    def with_context(self, ctx: str) -> MsgpError:
        return self


class FatalError(_ContextError):
    """Decoding reached a state that should be unreachable."""

    def _describe(self) -> str:
        return "msgp: fatal decoding error (unreachable code)"


class ArrayError(_ContextError):
    """A fixed-size array was encoded with the wrong number of elements."""

    def __init__(self, wanted: int = 0, got: int = 0) -> None:
        super().__init__(wanted, got)
        self.wanted = wanted
        self.got = got

    def _describe(self) -> str:
        return f"msgp: wanted array of size {self.wanted}; got {self.got}"

    def resumable(self) -> bool:
        return True


class IntOverflow(_ContextError):
    """A signed integer does not fit in the requested bit size."""

    def __init__(self, value: int = 0, failed_bitsize: int = 0) -> None:
        super().__init__(value, failed_bitsize)
        self.value = value
        self.failed_bitsize = failed_bitsize

    def _describe(self) -> str:
        return f"msgp: {self.value} overflows int{self.failed_bitsize}"

    def resumable(self) -> bool:
        return True


class UintOverflow(_ContextError):
    """An unsigned integer does not fit in the requested bit size."""

    def __init__(self, value: int = 0, failed_bitsize: int = 0) -> None:
        super().__init__(value, failed_bitsize)
        self.value = value
        self.failed_bitsize = failed_bitsize

    def _describe(self) -> str:
        return f"msgp: {self.value} overflows uint{self.failed_bitsize}"

    def resumable(self) -> bool:
        return True


class UintBelowZero(_ContextError):
    """A negative integer was read where an unsigned one was wanted."""

    def __init__(self, value: int = 0) -> None:
        super().__init__(value)
        self.value = value

    def _describe(self) -> str:
        return f"msgp: attempted to cast int {self.value} to unsigned"

    def resumable(self) -> bool:
        return True

    def with_context(self, ctx: str) -> MsgpError:
        clone = copy.copy(self)
        clone.ctx = ctx
        return clone


class MsgpTypeError(_ContextError):
    """A decoding method does not suit the type found on the wire."""

    def __init__(self, method: Type = Type.INVALID, encoded: Type = Type.INVALID) -> None:
        super().__init__(method, encoded)
        self.method = method
        self.encoded = encoded

    def _describe(self) -> str:
        return (
            f"msgp: attempted to decode type {quote_str(str(self.encoded))} "
            f"with method for {quote_str(str(self.method))}"
        )

    def resumable(self) -> bool:
        return True


class InvalidPrefixError(MsgpError):
    """A prefix byte that MessagePack does not define."""

    def __init__(self, lead: int) -> None:
        super().__init__(lead)
        self.lead = lead

    def __str__(self) -> str:
        return f"msgp: unrecognized type prefix 0x{self.lead:x}"


class UnsupportedTypeError(_ContextError):
    """A value of a type that cannot be encoded was supplied."""

    def __init__(self, typ: Any = None) -> None:
        super().__init__(typ)
        self.typ = typ

    def _describe(self) -> str:
        if self.typ is None:
            name = "nil"
        elif isinstance(self.typ, type):
            name = self.typ.__qualname__
        else:
            name = str(self.typ)
        return f"msgp: type {quote_str(name)} not supported"

    def resumable(self) -> bool:
        return True


def cause(err: BaseException) -> BaseException:
    """Return the error underneath a wrapped error, or the error itself."""
    if isinstance(err, WrappedError) and err.cause is not None:
        return err.cause
    return err


def resumable(err: BaseException) -> bool:
    """Whether the stream can still be read after ``err``."""
    if isinstance(err, MsgpError):
        return err.resumable()
    return False


def ctx_string(ctx: Iterable[Any]) -> str:
    """Join context parts with slashes."""
    return "/".join(str(part) for part in ctx)


def wrap_error(err: BaseException, *args: Any) -> BaseException:
    """Return a new error that records where ``err`` occurred.

    Short-read errors are returned unchanged.
    """
    ctx = ctx_string(args)
    if isinstance(err, MsgpError):
        return err.with_context(ctx)
    return WrappedError(err, ctx)


def bad_prefix(want: Type, lead: int) -> MsgpError:
    """Describe an unexpected prefix byte when ``want`` was being decoded."""
    found = get_type(lead)
    if found is Type.INVALID:
        return InvalidPrefixError(lead)
    return MsgpTypeError(method=want, encoded=found)


_SIMPLE_ESCAPES = {
    ord("\\"): "\\\\",
    ord('"'): '\\"',
    0x07: "\\a",
    0x08: "\\b",
    0x0C: "\\f",
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\t"): "\\t",
    0x0B: "\\v",
}

_CHAR_ESCAPES = {chr(code): text for code, text in _SIMPLE_ESCAPES.items()}


def simple_quote_str(s: str | bytes) -> str:
    """Quote a string byte by byte, escaping everything outside printable ASCII."""
    data = s.encode("utf-8", "surrogateescape") if isinstance(s, str) else bytes(s)
    parts = ['"']
    for b in data:
        if b in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[b])
        elif 0x20 <= b <= 0x7E:
            parts.append(chr(b))
        else:
            parts.append(f"\\x{b:02x}")
    parts.append('"')
    return "".join(parts)


def quote_str(s: str) -> str:
    """Quote a string, keeping printable characters and escaping the rest."""
    parts = ['"']
    for ch in s:
        if ch in _CHAR_ESCAPES:
            parts.append(_CHAR_ESCAPES[ch])
        elif ch.isprintable():
            parts.append(ch)
        else:
            code = ord(ch)
            if code < 0x80:
                parts.append(f"\\x{code:02x}")
            elif code < 0x10000:
                parts.append(f"\\u{code:04x}")
            else:
                parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)