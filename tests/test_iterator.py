import io

import pytest

from jsonpull.iterator import Iterator, calc_hash, parse, parse_string
from jsonpull.reader import Config, IteratorError


class StagedReader:
    def __init__(self, *chunks):
        self._chunks = list(chunks)

    def read(self, size=-1):
        if not self._chunks:
            return b""
        return self._chunks.pop(0).encode("utf-8")


@pytest.mark.parametrize(
    "text, end, escaped",
    [
        ('abc"', 4, False),
        ('abc\\\\"', 6, True),
        ('abc\\\\\\\\"', 8, True),
        ('abc\\"', -1, False),
        ("abc\\", -1, True),
        ("abc\\\\", -1, False),
        ("\\\\", -1, False),
        ("\\", -1, True),
    ],
)
def test_find_string_end(text, end, escaped):
    assert parse_string(text).find_string_end() == (end, escaped)


def test_sloppy_skip_string_in_memory():
    it = Iterator('"abc', sloppy=True)
    it._skip_string()
    assert it.head == 1
    it = Iterator('\\""abc', sloppy=True)
    it._skip_string()
    assert it.head == 3


@pytest.mark.parametrize(
    "chunks, head",
    [
        (("abc", '"'), 1),
        (("abc", '1"'), 2),
        (("abc\\", '""'), 2),
    ],
)
def test_sloppy_skip_string_staged(chunks, head):
    it = Iterator(StagedReader(*chunks), None, 4096, sloppy=True)
    it._skip_string()
    assert it.head == head


def test_sloppy_skip_string_escaped_quote_is_incomplete():
    it = Iterator(StagedReader("abc\\", '"'), None, 4096, sloppy=True)
    with pytest.raises(IteratorError):
        it._skip_string()


@pytest.mark.parametrize(
    "text, head",
    [("}", 1), ("a}", 2), ("{}}a", 3), ('"}"}a', 4)],
)
def test_sloppy_skip_object(text, head):
    it = Iterator(text, sloppy=True)
    it._skip_object()
    assert it.head == head


def test_sloppy_skip_object_staged():
    it = Iterator(StagedReader("{", "}}a"), None, 4096, sloppy=True)
    it._skip_object()
    assert it.head == 2


def test_sloppy_skip_whole_value():
    it = Iterator('{"a": [1, "]"], "b": {}} 5', sloppy=True)
    it.skip()
    assert it.read_int() == 5


def test_read_object_walks_fields():
    it = parse_string('{"a":1, "b" : 2}')
    assert it.read_object() == "a"
    assert it.read_int() == 1
    assert it.read_object() == "b"
    assert it.read_int() == 2
    assert it.read_object() is None


def test_read_object_empty_and_null():
    assert parse_string("{}").read_object() is None
    assert parse_string("null").read_object() is None


@pytest.mark.parametrize("text", ['{"a" 1}', "{1}", "[1]"])
def test_read_object_errors(text):
    with pytest.raises(IteratorError):
        parse_string(text).read_object()


def test_read_object_cb_collects_values():
    it = parse_string('{ "a" : 1 , "b" : 2 }')
    values = {}

    def collect(iterator, field):
        values[field] = iterator.read_int()
        return True

    assert it.read_object_cb(collect) is True
    assert values == {"a": 1, "b": 2}
    assert it.depth == 0


def test_read_object_cb_stops_when_callback_says_so():
    it = parse_string('{"a":1,"b":2}')
    seen = []

    def first_only(iterator, field):
        seen.append(field)
        iterator.skip()
        return False

    assert it.read_object_cb(first_only) is False
    assert seen == ["a"]


def test_read_object_cb_null_and_empty():
    calls = []
    assert parse_string("null").read_object_cb(lambda i, f: calls.append(f)) is True
    assert parse_string("{}").read_object_cb(lambda i, f: calls.append(f)) is True
    assert calls == []


def test_read_object_cb_not_ended():
    it = parse_string('{"a":1 "b":2}')

    def skip_value(iterator, field):
        iterator.skip()
        return True

    with pytest.raises(IteratorError, match="object not ended with }"):
        it.read_object_cb(skip_value)


def test_read_map_cb_reads_keys():
    it = parse_string('{"x y":"1","\\u00e9":"2"}')
    values = {}

    def collect(iterator, field):
        values[field] = iterator.read_string()
        return True

    assert it.read_map_cb(collect) is True
    assert values == {"x y": "1", "é": "2"}


def test_read_map_cb_missing_colon():
    with pytest.raises(IteratorError, match="ReadMapCB"):
        parse_string('{"a" 1}').read_map_cb(lambda i, f: True)


def test_skip_mixed_array_then_next_value():
    it = parse_string('[1, "a\\"b", {"b": null}, true, false, -2.5e3, 0.5] 5')
    it.skip()
    assert it.read_int() == 5


def test_skip_and_return_bytes():
    it = parse_string('{"a": [1,2]}, 3')
    assert it.skip_and_return_bytes() == b'{"a": [1,2]}'


def test_skip_and_append_bytes():
    it = parse_string("[true]")
    assert it.skip_and_append_bytes(b"x") == b"x[true]"


def test_skip_capture_is_reset_after_error():
    it = parse_string("?")
    with pytest.raises(IteratorError):
        it.skip_and_return_bytes()
    it.reset_bytes(b"[1]")
    assert it.skip_and_return_bytes() == b"[1]"


def test_skip_big_number():
    assert parse_string("1e400 ").skip_and_return_bytes() == b"1e400"


def test_skip_across_stream_chunks():
    stream = io.BytesIO(b'{"a":"hello world","b":[1,2,3]} 7')
    it = parse(stream, None, 4)
    assert it.skip_and_return_bytes() == b'{"a":"hello world","b":[1,2,3]}'
    assert it.read_int() == 7


def test_read_raw_message():
    assert parse_string("  null").read_raw_message() is None
    assert parse_string('  [1, "2"] ').read_raw_message() == b'[1, "2"]'


@pytest.mark.parametrize(
    "text, pattern",
    [
        ('"a\x01"', "invalid control character"),
        ("?", "do not know how to skip: 63"),
        ("1.a", "missing digit after dot"),
        ("1.2.3", "more than one dot"),
        ("01", "leading zero is invalid"),
        ("nul", "expect ull"),
        ("[1 2]", "expect , or \\]"),
    ],
)
def test_skip_errors(text, pattern):
    with pytest.raises(IteratorError, match=pattern):
        parse_string(text).skip()


def test_skip_respects_max_depth():
    with pytest.raises(IteratorError, match="exceeded max depth"):
        parse_string("[[[1]]]", Config(max_depth=2)).skip()
    assert parse_string("[[1]] 4", Config(max_depth=2)).skip() is None


def test_calc_hash_empty_is_offset_basis():
    assert calc_hash("", True) == 0x811C9DC5


def test_calc_hash_case_handling():
    assert calc_hash("Field", False) == calc_hash("field", False)
    assert calc_hash("Field", True) != calc_hash("field", True)


def test_calc_hash_stays_in_int64_range():
    value = calc_hash("a fairly long field name to force wrapping", True)
    assert -(1 << 63) <= value < (1 << 63)


def test_read_field_hash_matches_calc_hash():
    it = parse_string('"Field": 1')
    assert it._read_field_hash() == calc_hash("field", False)
    assert it.read_int() == 1


def test_read_field_hash_with_escape():
    it = parse_string('"Fi\\u0065ld": 1')
    assert it._read_field_hash() == calc_hash("field", False)


def test_read_field_hash_case_sensitive():
    it = parse_string('"Field":1', Config(case_sensitive=True))
    assert it._read_field_hash() == calc_hash("Field", True)