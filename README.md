# msgwire

Tools for reading the MessagePack wire format. The package has a
buffered stream reader, extension types, a tagged `Number`, helpers for
whole files, and conversion of MessagePack data to JSON.

## Installation

```
pip install msgwire
```

## Reading values from a stream

```python
import io
from msgwire.reader import Reader

data = bytes([0x82, 0xA1, 0x61, 0x01, 0xA1, 0x62, 0xC3])  # {"a": 1, "b": true}
reader = Reader(io.BytesIO(data))
size = reader.read_map_header()
for _ in range(size):
    key = reader.read_string()
    print(key, reader.next_type())
    reader.skip()
```

`Reader` has typed read methods (`read_int64`, `read_uint32`,
`read_float64`, `read_string`, `read_bytes`, `read_complex128`,
`read_time` and more). It also has `skip`, `copy_next` and `next_type`.
`msgwire.types.Type` lists the wire types.

When the stream runs out, `Reader` raises `EOFError`. Decoding errors are
raised as exceptions from `msgwire.errors`, such as `MsgpTypeError`,
`InvalidPrefixError`, `IntOverflow`, `UintOverflow` and `UintBelowZero`.
`msgwire.errors.resumable(err)` tells you whether the stream can still be
read after an error. `wrap_error(err, "field", 3)` adds context that
shows where in a nested value the error happened. `cause` returns the
original error.

`read_time` returns an aware `datetime` in the local time zone. It drops
any precision below a microsecond.

## Generic decoding

```python
from msgwire.values import read_intf

value = read_intf(Reader(io.BytesIO(data)))  # {'a': 1, 'b': True}
```

`read_intf` decodes values as follows:

- arrays become lists;
- maps become dicts with `str` keys;
- both integer kinds become `int`;
- nil becomes `None`;
- extensions become instances of a registered type, or `RawExtension`.

`msgwire.values.decode(stream, d)` fills a `Decodable` from a stream.

## Extensions

Subclass `msgwire.extension.Extension`, or use `RawExtension`. Register
your own types with `register_extension(typ, factory)`. Types 3, 4 and 5
are reserved for complex64, complex128 and time values. Registering one
of these, or registering the same type twice, raises `ValueError`.

The module has these functions for encoding and decoding extensions:

- `append_extension` and `read_extension_bytes` work on in-memory bytes.
- `write_extension` and `write_extension_raw` write to a binary stream.
- `peek_extension` returns the type of an encoded extension.

## Numbers

`msgwire.number.Number` holds an int64, a uint64, a float32 or a float64.
It can be decoded from any numeric wire type with `decode_msg` or
`unmarshal_msg`, and encoded again with `encode_msg` or `marshal_msg`.
It keeps its kind through a round trip. `str(n)` and `to_json()` give
the value as text without an exponent.

## Files

`msgwire.files.write_file(src, file)` replaces the contents of a binary
file with the encoding of `src`. It uses the object's `encode_msg` if it
has one. Otherwise it calls `marshal_msg`, whose output must not be
larger than `msgsize()`.

`read_file(dst, file)` loads `dst` from the whole file, with
`decode_msg` or `unmarshal_msg`.

## JSON conversion

```python
import io
from msgwire.jsonconv import unmarshal_as_json, copy_to_json

out = io.BytesIO()
unmarshal_as_json(out, data)           # from a bytes buffer
copy_to_json(out, io.BytesIO(data))    # from a stream, until it ends
```

Both functions write UTF-8 JSON bytes to a binary stream and return the
number of bytes written. `reader_to_json` does the same for an existing
`Reader`. The conversion works as follows:

- `bin` values and raw extensions are written as base64.
- Raw extensions are written as `{"type":…,"data":"…"}`.
- Times are written as RFC 3339 strings.
- Invalid UTF-8 in strings becomes `\ufffd`.

## What the package does not do

The package reads MessagePack. It does not write general values: there
is no writer or append API for strings, integers, maps or arrays. The
only encoders are for extensions and for `Number`.

## Running the tests

```
pip install -e ".[test]"
pytest
```