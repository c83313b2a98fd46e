import base64
import io
import json
import struct
from datetime import datetime, timezone

import pytest

from msgwire.errors import InvalidPrefixError, MsgpTypeError, ShortBytesError
from msgwire.extension import (
    Extension,
    RawExtension,
    append_extension,
    register_extension,
)
from msgwire.integers import put_mint64, put_muint16, put_unix
from msgwire.jsonconv import copy_to_json, reader_to_json, unmarshal_as_json
from msgwire.reader import Reader


def mstr(s):
    data = s.encode("utf-8") if isinstance(s, str) else bytes(s)
    n = len(data)
    if n < 32:
        return bytes([0xA0 | n]) + data
    return bytes([0xD9, n]) + data


def mbin(data):
    return bytes([0xC4, len(data)]) + data


def mmap(n):
    return bytes([0x80 | n])


def marr(n):
    return bytes([0x90 | n])


def mf32(f):
    return b"\xca" + struct.pack(">f", f)


def mf64(f):
    return b"\xcb" + struct.pack(">d", f)


def mtime(sec, nsec):
    return bytes([0xC7, 12, 5]) + put_unix(sec, nsec)


def mcomplex64(c):
    return bytes([0xD7, 3]) + struct.pack(">ff", c.real, c.imag)


def via_stream(msg):
    out = io.BytesIO()
    n = copy_to_json(out, io.BytesIO(msg))
    assert n == len(out.getvalue())
    return out.getvalue()


def via_bytes(msg):
    out = io.BytesIO()
    n = unmarshal_as_json(out, msg)
    assert n == len(out.getvalue())
    return out.getvalue()


def convert(mode, msg):
    if mode == "stream":
        return via_stream(msg)
    return via_bytes(msg)


MODES = ["stream", "bytes"]


class _Point(Extension):
    def __init__(self):
        self.x = 0
        self.y = 0

    def extension_type(self):
        return 77

    def marshal_binary(self):
        return bytes([self.x, self.y])

    def unmarshal_binary(self, data):
        self.x, self.y = data[0], data[1]

    def to_json(self):
        return json.dumps({"x": self.x, "y": self.y}).encode()


register_extension(77, _Point)


def _copy_json_message():
    return (
        mmap(6)
        + mstr("thing_1")
        + mstr("a string object")
        + mstr("a_map")
        + mmap(2)
        + mstr("float_a")
        + mf32(1.0)
        + mstr("int_b")
        + put_mint64(-100)
        + mstr("some bytes")
        + mbin(b"here are some bytes")
        + mstr("a bool")
        + b"\xc3"
        + mstr("a map")
        + mmap(2)
        + mstr("internal_one")
        + mstr("blah")
        + mstr("internal_two")
        + mstr("blahhh...")
        + mstr("float64")
        + mf64(1672209023)
    )


@pytest.mark.parametrize("mode", MODES)
def test_copy_json(mode):
    mp = json.loads(convert(mode, _copy_json_message()))
    assert len(mp) == 6
    assert mp["thing_1"] == "a string object"
    assert mp["a map"]["internal_one"] == "blah"
    assert mp["a_map"] == {"float_a": 1, "int_b": -100}
    assert mp["some bytes"] == base64.b64encode(b"here are some bytes").decode()
    assert mp["a bool"] is True
    assert float(mp["float64"]) == 1672209023.0


@pytest.mark.parametrize("mode", MODES)
def test_negative_utf8(mode):
    out = convert(mode, bytes([0xA1, 0xE0]))
    assert out.decode("utf-8") == '"\\ufffd"'
    assert out == b'"\\ufffd"'


def test_unmarshal_json():
    msg = (
        mmap(5)
        + mstr("thing_1")
        + mstr("a string object")
        + mstr("a_map")
        + mmap(2)
        + mstr("cmplx")
        + mcomplex64(complex(1.0, 1.0))
        + mstr("int_b")
        + put_mint64(-100)
        + mstr("an extension")
        + append_extension(b"", RawExtension(b"blaaahhh", 1))
        + mstr("some bytes")
        + mbin(b"here are some bytes")
        + mstr("now")
        + mtime(1609459200, 123456000)
    )
    mp = json.loads(via_bytes(msg))
    assert len(mp) == 5
    assert mp["thing_1"] == "a string object"
    assert "now" in mp
    assert mp["a_map"]["cmplx"]["type"] == 3
    assert mp["an extension"] == {
        "type": 1,
        "data": base64.b64encode(b"blaaahhh").decode(),
    }


@pytest.mark.parametrize("mode", MODES)
def test_time_is_rfc3339(mode):
    text = json.loads(convert(mode, mtime(1609459200, 123456000)))
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    assert parsed == datetime(2021, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc)


@pytest.mark.parametrize("mode", MODES)
def test_string_escaping(mode):
    raw = 'a<b>&"\\\n\t\r\x01\u2028'
    out = convert(mode, mstr(raw))
    assert out == b'"a\\u003cb\\u003e\\u0026\\"\\\\\\n\\t\\r\\u0001\\u2028"'
    assert json.loads(out) == raw


@pytest.mark.parametrize("mode", MODES)
def test_float_formatting(mode):
    assert convert(mode, mf32(3.141)) == b"3.141"
    assert convert(mode, mf32(1.0)) == b"1"
    assert convert(mode, mf64(0.1)) == b"0.1"
    assert convert(mode, mf64(1e21)) == b"1000000000000000000000"


@pytest.mark.parametrize("mode", MODES)
def test_array_scalars(mode):
    msg = marr(4) + b"\xc3" + b"\xc0" + put_muint16(2089) + b"\xc2"
    assert convert(mode, msg) == b"[true,null,2089,false]"


@pytest.mark.parametrize("mode", MODES)
def test_empty_containers(mode):
    assert convert(mode, mmap(0) + marr(0)) == b"{}[]"


@pytest.mark.parametrize("mode", MODES)
def test_several_top_level_objects(mode):
    assert convert(mode, b"\x01\x02" + mstr("x")) == b'12"x"'


@pytest.mark.parametrize("mode", MODES)
def test_registered_extension(mode):
    point = _Point()
    point.x, point.y = 1, 2
    out = convert(mode, append_extension(b"", point))
    assert json.loads(out) == {"x": 1, "y": 2}


def test_bin_key_base64_in_bytes_path():
    msg = mmap(1) + mbin(b"ab") + b"\x01"
    assert via_bytes(msg) == b'{"YWI=":1}'


def test_bin_key_raw_in_stream_path():
    msg = mmap(1) + mbin(b"ab") + b"\x01"
    assert via_stream(msg) == b'{"ab":1}'


def test_empty_key_in_stream_path_is_short():
    with pytest.raises(ShortBytesError):
        copy_to_json(io.BytesIO(), io.BytesIO(mmap(1) + mstr("") + b"\x01"))


def test_empty_key_in_bytes_path():
    assert via_bytes(mmap(1) + mstr("") + b"\x01") == b'{"":1}'


def test_non_string_key_is_type_error_stream():
    with pytest.raises(MsgpTypeError):
        copy_to_json(io.BytesIO(), io.BytesIO(mmap(1) + b"\x01" + b"\x01"))


def test_non_string_key_is_type_error_bytes():
    with pytest.raises(MsgpTypeError):
        unmarshal_as_json(io.BytesIO(), mmap(1) + b"\x01" + b"\x01")


def test_truncated_bytes_is_short():
    with pytest.raises(ShortBytesError):
        unmarshal_as_json(io.BytesIO(), mstr("hello")[:3])


def test_invalid_prefix_stream():
    with pytest.raises(InvalidPrefixError):
        copy_to_json(io.BytesIO(), io.BytesIO(b"\xc1"))


def test_invalid_prefix_bytes():
    with pytest.raises(InvalidPrefixError):
        unmarshal_as_json(io.BytesIO(), b"\xc1")


def test_reader_to_json_counts_bytes():
    out = io.BytesIO()
    n = reader_to_json(Reader(io.BytesIO(mstr("hi") + b"\xc0")), out)
    assert out.getvalue() == b'"hi"null'
    assert n == 8


def test_stream_empty_input():
    out = io.BytesIO()
    assert copy_to_json(out, io.BytesIO(b"")) == 0
    assert out.getvalue() == b""