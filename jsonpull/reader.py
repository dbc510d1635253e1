"""Byte-level JSON reading: buffering, whitespace, literals and strings."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

DEFAULT_BUFFER_SIZE = 4096
RUNE_ERROR = 0xFFFD
MAX_RUNE = 0x10FFFF

_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_WHITESPACE = frozenset(b" \n\t\r")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_STRING_STOP = re.compile(rb'["\\\x00-\x1f]')
_SIMPLE_ESCAPES = {
    ord('"'): b'"',
    ord("\\"): b"\\",
    ord("/"): b"/",
    ord("b"): b"\b",
    ord("f"): b"\f",
    ord("n"): b"\n",
    ord("r"): b"\r",
    ord("t"): b"\t",
}


class IteratorError(ValueError):
    """Raised when the input is not the JSON the caller asked for."""

    def __init__(self, operation: str, message: str, offset: int = 0, context: str = ""):
        self.operation = operation
        self.message = message
        self.offset = offset
        self.context = context
        super().__init__(
            f"{operation}: {message}, error found in #{offset} byte of ...|{context}|..."
        )


@dataclass(frozen=True)
class Config:
    """Options shared by all readers built from it."""

    case_sensitive: bool = False
    convert_string_to_64: bool = False
    max_depth: int = 10000


def encode_rune(code_point: int) -> bytes:
    """UTF-8 bytes of a code point; invalid ones become U+FFFD."""
    if code_point < 0 or code_point > MAX_RUNE or 0xD800 <= code_point <= 0xDFFF:
        code_point = RUNE_ERROR
    return chr(code_point).encode("utf-8")


def _combine_surrogates(high: int, low: int) -> int:
    if 0xD800 <= high < 0xDC00 and 0xDC00 <= low < 0xE000:
        return 0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00)
    return RUNE_ERROR


def _char(c: int) -> str:
    return bytes([c]).decode("utf-8", "replace")


Source = Union[None, str, bytes, bytearray, memoryview, object]


class Reader:
    """Pulls JSON tokens from bytes, text or a binary stream."""

    def __init__(
        self,
        source: Source = None,
        config: Optional[Config] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.config = config if config is not None else Config()
        self.buffer_size = buffer_size
        self.attachment = None
        self._reset(source)

    def _reset(self, source: Source) -> None:
        self._stream = None
        if source is None:
            data = b""
        elif isinstance(source, str):
            data = source.encode("utf-8")
        elif isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
        else:
            self._stream = source
            data = b""
        self.buf = data
        self.head = 0
        self.tail = len(data)
        self.depth = 0
        self.eof = False
        self._captured: Optional[bytearray] = None
        self._capture_started_at = -1

    def reset_bytes(self, data) -> "Reader":
        """Start reading a new in-memory document with the same settings."""
        self._reset(b"" if data is None else bytes(data))
        return self

    def report_error(self, operation: str, message: str):
        """Raise an IteratorError pointing at the current position."""
        peek_start = max(0, self.head - 10)
        context = self.buf[peek_start:min(self.tail, self.head + 10)]
        raise IteratorError(
            operation,
            message,
            self.head - peek_start,
            context.decode("utf-8", "replace"),
        )

    # buffer management

    def _load_more(self) -> bool:
        if self._stream is None:
            self.head = self.tail
            self.eof = True
            return False
        if self._captured is not None:
            self._captured += self.buf[self._capture_started_at:self.tail]
            self._capture_started_at = 0
        chunk = self._stream.read(self.buffer_size)
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        if not chunk:
            self.head = self.tail
            self.eof = True
            return False
        self.buf = bytes(chunk)
        self.head = 0
        self.tail = len(self.buf)
        return True

    def _read_byte(self) -> int:
        if self.head == self.tail and not self._load_more():
            return 0
        c = self.buf[self.head]
        self.head += 1
        return c

    def _unread_byte(self) -> None:
        if self.eof:
            return
        self.head -= 1

    def _next_token(self) -> int:
        while True:
            buf, i, tail = self.buf, self.head, self.tail
            while i < tail and buf[i] in _WHITESPACE:
                i += 1
            if i < tail:
                self.head = i + 1
                return buf[i]
            self.head = i
            if not self._load_more():
                return 0

    def _skip_whitespaces_without_load_more(self) -> bool:
        buf, i, tail = self.buf, self.head, self.tail
        while i < tail:
            if buf[i] not in _WHITESPACE:
                self.head = i
                return False
            i += 1
        return True

    def _skip_literal(self, rest: bytes) -> None:
        operation = "skipThreeBytes" if len(rest) == 3 else "skipFourBytes"
        for expected in rest:
            if self._read_byte() != expected:
                self.report_error(operation, f"expect {rest.decode('ascii')}")

    # capture of raw input

    def _start_capture(self, started_at: int, buffer: bytes = b"") -> None:
        if self._captured is not None:
            raise RuntimeError("already in capture mode")
        self._capture_started_at = started_at
        self._captured = bytearray(buffer)

    def _stop_capture(self) -> bytes:
        if self._captured is None:
            raise RuntimeError("not in capture mode")
        captured = self._captured + self.buf[self._capture_started_at:self.head]
        self._captured = None
        self._capture_started_at = -1
        return bytes(captured)

    # nesting depth

    def _increment_depth(self) -> bool:
        self.depth += 1
        if self.depth <= self.config.max_depth:
            return True
        self.report_error("incrementDepth", "exceeded max depth")
        return False

    def _decrement_depth(self) -> bool:
        self.depth -= 1
        if self.depth >= 0:
            return True
        self.report_error("decrementDepth", "unexpected negative nesting")
        return False

    # literals

    def read_nil(self) -> bool:
        """Consume a null if one is next; report whether it was."""
        if self._next_token() == ord("n"):
            self._skip_literal(b"ull")
            return True
        self._unread_byte()
        return False

    def read_bool(self) -> bool:
        """Read true or false."""
        c = self._next_token()
        if c == ord("t"):
            self._skip_literal(b"rue")
            return True
        if c == ord("f"):
            self._skip_literal(b"alse")
            return False
        self.report_error("ReadBool", "expect t or f, but found " + _char(c))
        return False

    # strings

    def read_string(self) -> str:
        """Read a string value; null reads as the empty string."""
        c = self._next_token()
        if c == _QUOTE:
            match = _STRING_STOP.search(self.buf, self.head, self.tail)
            if match is not None:
                stop = match.start()
                found = self.buf[stop]
                if found == _QUOTE:
                    text = self.buf[self.head:stop].decode("utf-8", "replace")
                    self.head = stop + 1
                    return text
                if found != _BACKSLASH:
                    self.report_error(
                        "ReadString", f"invalid control character found: {found}"
                    )
            return self._read_string_slow_path()
        if c == ord("n"):
            self._skip_literal(b"ull")
            return ""
        self.report_error("ReadString", 'expects " or n, but found ' + _char(c))
        return ""

    def _read_string_slow_path(self) -> str:
        return self._read_string_bytes().decode("utf-8", "replace")

    def _read_string_bytes(self) -> bytes:
        out = bytearray()
        while True:
            c = self._read_byte()
            if self.eof:
                self._unexpected_end()
            if c == _QUOTE:
                return bytes(out)
            if c == _BACKSLASH:
                self._read_escaped_char(self._read_byte(), out)
            else:
                out.append(c)

    def _unexpected_end(self):
        self.report_error("readStringSlowPath", "unexpected end of input")

    def _read_escaped_char(self, c: int, out: bytearray) -> None:
        if c == ord("u"):
            rune = self._read_u4()
            if not 0xD800 <= rune <= 0xDFFF:
                out += encode_rune(rune)
                return
            c = self._read_byte()
            if self.eof:
                self._unexpected_end()
            if c != _BACKSLASH:
                self._unread_byte()
                out += encode_rune(rune)
                return
            c = self._read_byte()
            if self.eof:
                self._unexpected_end()
            if c != ord("u"):
                out += encode_rune(rune)
                self._read_escaped_char(c, out)
                return
            second = self._read_u4()
            combined = _combine_surrogates(rune, second)
            if combined == RUNE_ERROR:
                out += encode_rune(rune)
                out += encode_rune(second)
            else:
                out += encode_rune(combined)
            return
        escaped = _SIMPLE_ESCAPES.get(c)
        if escaped is None:
            self.report_error("readEscapedChar", "invalid escape char after \\")
        out += escaped

    def _read_u4(self) -> int:
        value = 0
        for _ in range(4):
            c = self._read_byte()
            if self.eof:
                self._unexpected_end()
            if c not in _HEX_DIGITS:
                self.report_error("readU4", "expects 0~9 or a~f, but found " + _char(c))
            value = value * 16 + int(chr(c), 16)
        return value

    def read_string_as_slice(self) -> bytes:
        """Read the raw bytes of a string without decoding escapes."""
        c = self._next_token()
        if c != _QUOTE:
            self.report_error(
                "ReadStringAsSlice", 'expects " or n, but found ' + _char(c)
            )
        end = self.buf.find(b'"', self.head, self.tail)
        if end != -1:
            result = self.buf[self.head:end]
            self.head = end + 1
            return bytes(result)
        copied = bytearray(self.buf[self.head:self.tail])
        self.head = self.tail
        while True:
            c = self._read_byte()
            if self.eof or c == _QUOTE:
                return bytes(copied)
            copied.append(c)