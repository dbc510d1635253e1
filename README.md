# jsonpull

`jsonpull` reads JSON one value at a time. It never builds the whole document in
memory. You point an `Iterator` at bytes, a `str` or a binary stream, then call
the read method for the value you expect next. An `IteratorError` is raised when
the input does not match.

The package has no runtime dependencies.

## Reading values

```python
from jsonpull.iterator import parse_string

it = parse_string('{"name": "widget", "count": 3, "tags": ["a", "b"]}')

field = it.read_object()
while field is not None:
    if field == "name":
        print(it.read_string())
    elif field == "count":
        print(it.read_int())
    else:
        it.skip()
    field = it.read_object()
```

`read_object()` returns the next field name. It returns `None` when the object
ends, and also when the value is `null`.

There are two callback forms, `read_object_cb(callback)` and
`read_map_cb(callback)`. Each calls `callback(iterator, field)` once per field.
The walk stops as soon as the callback returns a false value. The method returns
`False` if the callback stopped the walk early, and `True` if it reached the end
of the object or met a `null`.

Other readers:

- `read_string()` returns the decoded string. Escapes and surrogate pairs are
  decoded. A `null` reads as `""`.
- `read_string_as_slice()` returns the raw bytes between the quotes. Escapes are
  not decoded.
- `read_bool()` reads `true` or `false`.
- `read_nil()` consumes a `null` if one comes next, and returns whether it did.

## Numbers

Each integer reader enforces the range of the type it is named after. All of
them return a Python `int`:

`read_int8`, `read_uint8`, `read_int16`, `read_uint16`, `read_int32`,
`read_uint32`, `read_int64`, `read_uint64`, and the 64-bit `read_int` and
`read_uint`.

The float readers are `read_float64` and `read_float32`. `read_float32` rounds
the value to single precision.

All of these readers reject leading zeros, a leading dot, a trailing dot and a
dot with no digit after it. The integer readers also reject a fractional part.

For values of any size:

- `read_big_int()` returns an `int`.
- `read_big_float()` returns a `decimal.Decimal`.
- `read_number()` returns the literal text as a `jsonpull.number.Number`. This is
  a `str` subclass. Its `float64()` and `int64()` methods convert the text and
  raise `ValueError` when the text is malformed or out of range.
- `cast_json_number(value)` returns the text of a `Number`. For any other value
  it returns `None`.

## Skipping and capturing

- `skip()` moves past the next value, however deeply it is nested.
- `skip_and_return_bytes()` skips the next value and returns the exact bytes it
  passed over.
- `skip_and_append_bytes(buffer)` skips the next value and returns `buffer`
  followed by those bytes.
- `read_raw_message()` returns the raw bytes of the next value, or `None` for
  `null`.

Skipping validates what it passes over by default. Construct the iterator as
`Iterator(source, config, buffer_size, sloppy=True)` to skip faster. In that
mode the iterator only tracks brackets and quotes.

## Streams

```python
import io
from jsonpull.iterator import parse

it = parse(io.BytesIO(b"[1, 2, 3]"), buffer_size=4096)
```

Stream input is read in chunks of `buffer_size` bytes, loaded as parsing needs
more. `reset_bytes(data)` restarts an iterator on a new in-memory document and
keeps its settings.

## Configuration

`jsonpull.reader.Config` is a frozen dataclass with these fields:

- `case_sensitive` (default `False`): controls how field names are hashed for
  matching. `calc_hash(text, case_sensitive)` computes the same hash.
- `convert_string_to_64` (default `False`): `read_int64`, `read_uint64` and
  `read_float64` also accept numbers wrapped in quotes, such as `"42"`.
- `max_depth` (default `10000`): nesting deeper than this raises an error.

## Errors

Malformed input raises `jsonpull.reader.IteratorError`, a subclass of
`ValueError`. It has these attributes:

- `operation`: the step that failed.
- `message`: what went wrong.
- `offset`: the position within `context`.
- `context`: a short excerpt of the surrounding input.

## What it does not do

This package only reads. It cannot write or encode JSON. It also cannot decode a
document directly into dataclasses or other typed objects. Your code pulls each
value out with the read methods above.