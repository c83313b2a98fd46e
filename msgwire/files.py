"""Reading and writing whole files holding one MessagePack object."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, BinaryIO

from .reader import Reader


class MarshalSizer(ABC):
    """An object that can encode itself and bound its encoded size."""

    @abstractmethod
    def marshal_msg(self, b: bytes) -> bytes:
        """Return ``b`` followed by this object's encoding."""

    @abstractmethod
    def msgsize(self) -> int:
        """An upper bound on the encoded size."""


def read_file(dst: Any, file: BinaryIO) -> None:
    """Load ``dst`` from the whole of ``file``.

    Objects with ``decode_msg`` read from a stream over the file; others
    get the file's contents passed to ``unmarshal_msg``.
    """
    file.seek(0)
    decode_msg = getattr(dst, "decode_msg", None)
    if callable(decode_msg):
        decode_msg(Reader(file))
        return
    dst.unmarshal_msg(file.read())


def write_file(src: Any, file: BinaryIO) -> None:
    """Replace the contents of ``file`` with the encoding of ``src``.

    Objects with ``encode_msg`` write straight to the file; others are
    encoded with ``marshal_msg``, whose output must not be larger than
    ``msgsize()``.
    """
    file.seek(0)
    encode_msg = getattr(src, "encode_msg", None)
    if callable(encode_msg):
        encode_msg(file)
    else:
        raw = src.marshal_msg(b"")
        limit = src.msgsize()
        if len(raw) > limit:
            raise ValueError(
                f"encoded size {len(raw)} exceeds the reported size {limit}"
            )
        file.write(raw)
    file.truncate()
    file.flush()