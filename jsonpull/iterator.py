"""Walking JSON objects and skipping over values without decoding them."""

from __future__ import annotations

from typing import Callable, Optional

from .numbers import NumberReader
from .reader import DEFAULT_BUFFER_SIZE, Config, IteratorError

_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_COLON = ord(":")
_COMMA = ord(",")
_DOT = ord(".")
_OPEN_OBJECT = ord("{")
_CLOSE_OBJECT = ord("}")
_OPEN_ARRAY = ord("[")
_CLOSE_ARRAY = ord("]")
_DIGITS = frozenset(b"0123456789")
_NUMBER_START = frozenset(b"-123456789")
_NUMBER_END = frozenset(b",]} \t\n\r")
_UPPER_A = ord("A")
_UPPER_Z = ord("Z")
_LOWER_OFFSET = ord("a") - ord("A")

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x1000193
_MASK64 = (1 << 64) - 1
_SIGN64 = 1 << 63

FieldCallback = Callable[["Iterator", str], bool]


def _char(c: int) -> str:
    return bytes([c]).decode("utf-8", "replace")


def _mix(hash_value: int, b: int) -> int:
    hash_value = ((hash_value ^ b) * _FNV_PRIME) & _MASK64
    if hash_value >= _SIGN64:
        hash_value -= 1 << 64
    return hash_value


def calc_hash(text: str, case_sensitive: bool) -> int:
    """The signed 64-bit FNV-style hash used to match field names."""
    if not case_sensitive:
        text = text.lower()
    hash_value = _FNV_OFFSET
    for b in text.encode("utf-8"):
        hash_value = _mix(hash_value, b)
    return hash_value


class Iterator(NumberReader):
    """A pull reader that can walk objects and skip whole values.

    With ``sloppy=True`` skipping only tracks brackets and quotes instead of
    validating what it passes over.
    """

    def __init__(
        self,
        source=None,
        config: Optional[Config] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        *,
        sloppy: bool = False,
    ):
        super().__init__(source, config, buffer_size)
        self.sloppy = sloppy

    # objects

    def _expect_colon(self, operation: str) -> None:
        c = self._next_token()
        if c != _COLON:
            self.report_error(
                operation, "expect : after object field, but found " + _char(c)
            )

    def read_object(self) -> Optional[str]:
        """Read the next field name of an object; None once it has ended or is null."""
        c = self._next_token()
        if c == ord("n"):
            self._skip_literal(b"ull")
            return None
        if c == _OPEN_OBJECT:
            c = self._next_token()
            if c == _QUOTE:
                self._unread_byte()
                field = self.read_string()
                self._expect_colon("ReadObject")
                return field
            if c == _CLOSE_OBJECT:
                return None
            self.report_error("ReadObject", 'expect " after {, but found ' + _char(c))
        if c == _COMMA:
            field = self.read_string()
            self._expect_colon("ReadObject")
            return field
        if c == _CLOSE_OBJECT:
            return None
        self.report_error(
            "ReadObject", "expect { or , or } or n, but found " + _char(c)
        )
        return None

    def _walk_object(self, operation: str, callback: FieldCallback) -> bool:
        c = self._next_token()
        if c == ord("n"):
            self._skip_literal(b"ull")
            return True
        if c != _OPEN_OBJECT:
            self.report_error(operation, "expect { or n, but found " + _char(c))
        self._increment_depth()
        c = self._next_token()
        if c == _CLOSE_OBJECT:
            return self._decrement_depth()
        if c != _QUOTE:
            self.report_error(operation, 'expect " after {, but found ' + _char(c))
        self._unread_byte()
        while True:
            field = self.read_string()
            self._expect_colon(operation)
            if not callback(self, field):
                self._decrement_depth()
                return False
            c = self._next_token()
            if c != _COMMA:
                break
        if c != _CLOSE_OBJECT:
            self.report_error(operation, "object not ended with }")
        return self._decrement_depth()

    def read_object_cb(self, callback: FieldCallback) -> bool:
        """Call callback(iterator, field) for each field; False if it stopped the walk."""
        return self._walk_object("ReadObjectCB", callback)

    def read_map_cb(self, callback: FieldCallback) -> bool:
        """Like read_object_cb, for objects whose keys are arbitrary strings."""
        return self._walk_object("ReadMapCB", callback)

    def _read_field_hash(self) -> int:
        case_sensitive = self.config.case_sensitive
        hash_value = _FNV_OFFSET
        c = self._next_token()
        if c != _QUOTE:
            self.report_error("readFieldHash", 'expect ", but found ' + _char(c))
        while True:
            buf, i, tail = self.buf, self.head, self.tail
            while i < tail:
                b = buf[i]
                if b == _BACKSLASH:
                    self.head = i
                    for ch in self._read_string_slow_path():
                        code = ord(ch)
                        if _UPPER_A <= code <= _UPPER_Z and not case_sensitive:
                            code += _LOWER_OFFSET
                        hash_value = _mix(hash_value, code)
                    self._expect_field_hash_colon()
                    return hash_value
                if b == _QUOTE:
                    self.head = i + 1
                    self._expect_field_hash_colon()
                    return hash_value
                if _UPPER_A <= b <= _UPPER_Z and not case_sensitive:
                    b += _LOWER_OFFSET
                hash_value = _mix(hash_value, b)
                i += 1
            if not self._load_more():
                self.report_error("readFieldHash", "incomplete field name")

    def _expect_field_hash_colon(self) -> None:
        c = self._next_token()
        if c != _COLON:
            self.report_error("readFieldHash", "expect :, but found " + _char(c))

    # skipping

    def skip(self) -> None:
        """Move past the next complete JSON value."""
        c = self._next_token()
        if c == _QUOTE:
            self._skip_string()
        elif c == ord("n"):
            self._skip_literal(b"ull")
        elif c == ord("t"):
            self._skip_literal(b"rue")
        elif c == ord("f"):
            self._skip_literal(b"alse")
        elif c == ord("0"):
            self._unread_byte()
            self.read_float32()
        elif c in _NUMBER_START:
            self._skip_number()
        elif c == _OPEN_ARRAY:
            self._skip_array()
        elif c == _OPEN_OBJECT:
            self._skip_object()
        else:
            self.report_error("Skip", f"do not know how to skip: {c}")

    def skip_and_return_bytes(self) -> bytes:
        """Skip the next value and return a copy of its raw text."""
        return self.skip_and_append_bytes(b"")

    def skip_and_append_bytes(self, buffer) -> bytes:
        """Skip the next value and return buffer followed by its raw text."""
        self._start_capture(self.head, bytes(buffer))
        try:
            self.skip()
        except BaseException:
            self._stop_capture()
            raise
        return self._stop_capture()

    def read_raw_message(self) -> Optional[bytes]:
        """The raw text of the next value, or None if it is null."""
        if self.read_nil():
            return None
        return self.skip_and_return_bytes()

    def _skip_number(self) -> None:
        if self.sloppy:
            self._sloppy_skip_number()
            return
        if self._try_skip_number():
            return
        self._unread_byte()
        start, buf = self.head, self.buf
        try:
            self.read_float64()
        except IteratorError:
            if self.buf is not buf:
                raise
            self.head = start
            self.read_big_float()

    def _try_skip_number(self) -> bool:
        dot_found = False
        buf, tail = self.buf, self.tail
        i = self.head
        while i < tail:
            c = buf[i]
            if c in _DIGITS:
                pass
            elif c == _DOT:
                if dot_found:
                    self.report_error(
                        "validateNumber", "more than one dot found in number"
                    )
                if i + 1 == tail:
                    return False
                if buf[i + 1] not in _DIGITS:
                    self.report_error("validateNumber", "missing digit after dot")
                dot_found = True
            elif c in _NUMBER_END:
                if self.head == i:
                    return False
                self.head = i
                return True
            else:
                return False
            i += 1
        return False

    def _skip_string(self) -> None:
        if self.sloppy:
            self._sloppy_skip_string()
            return
        if not self._try_skip_string():
            self._unread_byte()
            self.read_string()

    def _try_skip_string(self) -> bool:
        buf, tail = self.buf, self.tail
        i = self.head
        while i < tail:
            c = buf[i]
            if c == _QUOTE:
                self.head = i + 1
                return True
            if c == _BACKSLASH:
                return False
            if c < 0x20:
                self.report_error(
                    "trySkipString", f"invalid control character found: {c}"
                )
            i += 1
        return False

    def _skip_object(self) -> None:
        if self.sloppy:
            self._sloppy_skip_container(_OPEN_OBJECT, _CLOSE_OBJECT, "object")
            return
        self._unread_byte()

        def skip_field(iterator: "Iterator", field: str) -> bool:
            iterator.skip()
            return True

        self.read_object_cb(skip_field)

    def _skip_array(self) -> None:
        if self.sloppy:
            self._sloppy_skip_container(_OPEN_ARRAY, _CLOSE_ARRAY, "array")
            return
        self._increment_depth()
        c = self._next_token()
        if c == _CLOSE_ARRAY:
            self._decrement_depth()
            return
        self._unread_byte()
        while True:
            self.skip()
            c = self._next_token()
            if c == _CLOSE_ARRAY:
                break
            if c != _COMMA:
                self.report_error("skipArray", "expect , or ], but found " + _char(c))
        self._decrement_depth()

    # sloppy skipping: track structure only

    def _sloppy_skip_number(self) -> None:
        while True:
            buf, i, tail = self.buf, self.head, self.tail
            while i < tail:
                if buf[i] in _NUMBER_END:
                    self.head = i
                    return
                i += 1
            if not self._load_more():
                return

    def _sloppy_skip_container(self, open_c: int, close_c: int, what: str) -> None:
        level = 1
        self._increment_depth()
        while True:
            i = self.head
            while i < self.tail:
                c = self.buf[i]
                if c == _QUOTE:
                    self.head = i + 1
                    self._sloppy_skip_string()
                    i = self.head
                    continue
                if c == open_c:
                    level += 1
                    self._increment_depth()
                elif c == close_c:
                    level -= 1
                    self._decrement_depth()
                    if level == 0:
                        self.head = i + 1
                        return
                i += 1
            if not self._load_more():
                self.report_error("skipObject", f"incomplete {what}")

    def _sloppy_skip_string(self) -> None:
        while True:
            end, escaped = self.find_string_end()
            if end != -1:
                self.head = end
                return
            if not self._load_more():
                self.report_error("skipString", "incomplete string")
            if escaped:
                self.head = 1

    def _odd_backslashes_before(self, end: int) -> bool:
        count = 0
        j = end - 1
        while j >= self.head and self.buf[j] == _BACKSLASH:
            count += 1
            j -= 1
        return count % 2 == 1

    def find_string_end(self):
        """(offset just past the closing quote or -1, whether an escape was seen).

        When no end is found, the flag tells whether the buffer ends inside
        an escape sequence.
        """
        escaped = False
        buf = self.buf
        for i in range(self.head, self.tail):
            c = buf[i]
            if c == _QUOTE:
                if not escaped:
                    return i + 1, False
                if not self._odd_backslashes_before(i):
                    return i + 1, True
            elif c == _BACKSLASH:
                escaped = True
        return -1, self._odd_backslashes_before(self.tail)


def parse_string(text: str, config: Optional[Config] = None) -> Iterator:
    """An iterator over the given JSON text."""
    return Iterator(text, config)


def parse(
    source, config: Optional[Config] = None, buffer_size: int = DEFAULT_BUFFER_SIZE
) -> Iterator:
    """An iterator over bytes, text or a binary stream read in chunks."""
    return Iterator(source, config, buffer_size)