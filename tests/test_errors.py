import pytest

from msgwire.errors import (
    ArrayError,
    FatalError,
    IntOverflow,
    InvalidPrefixError,
    MsgpError,
    MsgpTypeError,
    ShortBytesError,
    UintBelowZero,
    UintOverflow,
    UnsupportedTypeError,
    WrappedError,
    bad_prefix,
    cause,
    ctx_string,
    quote_str,
    resumable,
    simple_quote_str,
    wrap_error,
)
from msgwire.types import Type


def test_wrap_vanilla_error_with_no_additional_context():
    err = Exception("test")
    w = wrap_error(err)
    assert w is not err
    assert isinstance(w, WrappedError)
    assert str(w) == str(err)
    assert w.resumable() is False


def test_wrap_vanilla_error_with_additional_context():
    err = Exception("test")
    w = wrap_error(err, "foo", "bar")
    assert w is not err
    assert str(w) != str(err)
    assert resumable(w) is False
    assert str(w).startswith(str(err))
    assert str(w)[len(str(err)):] == " at foo/bar"


def test_wrap_resumable_error():
    w = wrap_error(ArrayError())
    assert resumable(w) is True


def test_wrap_multiple():
    w = wrap_error(wrap_error(MsgpTypeError(), "b"), "a")
    expected = 'msgp: attempted to decode type "<invalid>" with method for "<invalid>" at a/b'
    assert str(w) == expected


@pytest.mark.parametrize(
    "err", [Exception("test"), ArrayError(), UnsupportedTypeError()]
)
def test_cause(err):
    cerr = wrap_error(err, "test")
    assert cerr is not err
    assert cause(err) is err


def test_cause_of_wrapped_error_is_original():
    err = Exception("test")
    assert cause(wrap_error(err, "test")) is err


def test_cause_short_byte():
    err = ShortBytesError()
    cerr = wrap_error(err, "test")
    assert cerr is err
    assert cause(err) is err


@pytest.mark.parametrize("err", [Exception("test"), EOFError()])
def test_unwrap_wrapped(err):
    cerr = wrap_error(err, "test")
    assert cerr is not err
    assert cerr.__cause__ is err
    assert cause(cerr) is err


@pytest.mark.parametrize("err", [ArrayError(), UnsupportedTypeError()])
def test_unwrap_context_only(err):
    cerr = wrap_error(err, "test")
    assert cerr is not err
    assert type(cerr) is type(err)
    assert cerr.__cause__ is None
    assert str(cerr).endswith(" at test")
    assert not str(err).endswith(" at test")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", '""'),
        ("abc", '"abc"'),
        ('"', r'"\""'),
        ("'", "\"'\""),
        ("on🔥!", r'"on\xf0\x9f\x94\xa5!"'),
        ("line\r\nbr", r'"line\r\nbr"'),
        ("\x00", r'"\x00"'),
        (b"not\x80valid", r'"not\x80valid"'),
    ],
)
def test_simple_quote_str(text, expected):
    assert simple_quote_str(text) == expected


def test_quote_str_escapes_controls_and_keeps_printable():
    assert quote_str("abc") == '"abc"'
    assert quote_str('a"b\n') == '"a\\"b\\n"'
    assert quote_str("\x00") == '"\\x00"'
    assert quote_str("é") == '"é"'


def test_ctx_string_joins_with_slash():
    assert ctx_string(["foo", 1, "bar"]) == "foo/1/bar"
    assert ctx_string([]) == ""


def test_array_error_message():
    err = ArrayError(wanted=4, got=2)
    assert str(err) == "msgp: wanted array of size 4; got 2"
    assert err.resumable() is True


def test_int_overflow_message():
    err = IntOverflow(value=300, failed_bitsize=8)
    assert str(err) == "msgp: 300 overflows int8"
    assert str(err.with_context("field")) == "msgp: 300 overflows int8 at field"


def test_uint_overflow_message():
    err = UintOverflow(value=70000, failed_bitsize=16)
    assert str(err) == "msgp: 70000 overflows uint16"
    assert err.resumable() is True


def test_uint_below_zero_replaces_context():
    err = UintBelowZero(-1)
    assert str(err) == "msgp: attempted to cast int -1 to unsigned"
    twice = err.with_context("a").with_context("b")
    assert str(twice) == "msgp: attempted to cast int -1 to unsigned at b"
    assert str(err) == "msgp: attempted to cast int -1 to unsigned"


def test_context_errors_nest():
    err = FatalError()
    nested = err.with_context("inner").with_context("outer")
    assert str(nested) == "msgp: fatal decoding error (unreachable code) at outer/inner"
    assert nested.resumable() is False


def test_short_bytes_message():
    assert str(ShortBytesError()) == "msgp: too few bytes left to read object"
    assert resumable(ShortBytesError()) is False


def test_invalid_prefix_error():
    err = bad_prefix(Type.STR, 0xC1)
    assert isinstance(err, InvalidPrefixError)
    assert str(err) == "msgp: unrecognized type prefix 0xc1"
    assert err.resumable() is False
    wrapped = wrap_error(err, "x")
    assert isinstance(wrapped, WrappedError)
    assert cause(wrapped) is err


def test_bad_prefix_gives_type_error_for_known_prefix():
    err = bad_prefix(Type.STR, 0xC0)
    assert isinstance(err, MsgpTypeError)
    assert err.method is Type.STR
    assert err.encoded is Type.NIL
    assert str(err) == 'msgp: attempted to decode type "nil" with method for "str"'


def test_unsupported_type_message():
    err = UnsupportedTypeError(complex)
    assert str(err) == 'msgp: type "complex" not supported'
    assert err.resumable() is True


def test_wrapped_context_error_keeps_its_class():
    w = wrap_error(IntOverflow(value=1000, failed_bitsize=8), "a", "b")
    assert isinstance(w, IntOverflow)
    assert isinstance(w, MsgpError)
    assert w.ctx == "a/b"
    assert str(w) == "msgp: 1000 overflows int8 at a/b"


def test_resumable_of_plain_exception_is_false():
    assert resumable(ValueError("x")) is False
    assert resumable(wrap_error(ArrayError(), "x")) is True