"""Reading JSON numbers as integers of fixed width, floats and big values."""

from __future__ import annotations

import re
import struct
from decimal import Decimal, InvalidOperation

from .number import Number
from .reader import Reader

_QUOTE = ord('"')
_DOT = ord(".")
_ZERO = ord("0")
_MINUS = ord("-")
_DIGITS = frozenset(b"0123456789")
_END_OF_NUMBER = frozenset(b",]} \t\n")
_NUMBER_RUN = re.compile(rb"[-+.eE0-9]*")


def _describe(c: int) -> str:
    return bytes([c]).decode("utf-8", "replace")


def validate_float(text: str) -> str:
    """An error message for number text the float parser would accept wrongly, or ""."""
    if not text:
        return "empty number"
    if text[0] == "-":
        return "-- is not valid"
    dot = text.find(".")
    if dot != -1:
        if dot == len(text) - 1:
            return "dot can not be last character"
        if text[dot + 1] not in "0123456789":
            return "missing digit after dot"
    return ""


class NumberReader(Reader):
    """A reader that also understands JSON numbers."""

    # raw number text

    def _read_number_as_string(self) -> str:
        convert = self.config.convert_string_to_64
        if convert and self.head < self.tail and self.buf[self.head] == _QUOTE:
            self.head += 1
        parts = []
        while True:
            end = _NUMBER_RUN.match(self.buf, self.head, self.tail).end()
            parts.append(self.buf[self.head:end])
            self.head = end
            if end < self.tail or not self._load_more():
                break
        if convert and self.head < self.tail and self.buf[self.head] == _QUOTE:
            self.head += 1
        text = b"".join(parts).decode("ascii")
        if not text:
            self.report_error("readNumberAsString", "invalid number")
        return text

    def read_number(self) -> Number:
        """Read a number and keep its literal text."""
        return Number(self._read_number_as_string())

    def read_big_float(self) -> Decimal:
        """Read a number of any size as a Decimal."""
        text = self._read_number_as_string()
        try:
            return Decimal(text)
        except InvalidOperation:
            self.report_error("ReadBigFloat", f"invalid big float: {text}")

    def read_big_int(self) -> int:
        """Read an integer of any size."""
        text = self._read_number_as_string()
        try:
            return int(text, 10)
        except ValueError:
            self.report_error("ReadBigInt", "invalid big int")

    # floats

    def read_float32(self) -> float:
        """Read a number rounded to single precision."""
        if self._next_token() == _MINUS:
            return -self._read_positive_float("readFloat32", self._parse_float32)
        self._unread_byte()
        return self._read_positive_float("readFloat32", self._parse_float32)

    def read_float64(self) -> float:
        """Read a number as a double-precision float."""
        c = self._next_token()
        if self.config.convert_string_to_64 and c == _QUOTE:
            c = self._next_token()
        if c == _MINUS:
            return -self._read_positive_float("readFloat64", self._parse_float64)
        self._unread_byte()
        return self._read_positive_float("readFloat64", self._parse_float64)

    def _read_positive_float(self, operation: str, parse) -> float:
        if self.head < self.tail:
            c = self.buf[self.head]
            if c in _END_OF_NUMBER:
                self.report_error(operation, "empty number")
            if c == _DOT:
                self.report_error(operation, "leading dot is invalid")
            if (
                c == _ZERO
                and self.head + 1 < self.tail
                and self.buf[self.head + 1] in _DIGITS
            ):
                self.report_error(operation, "leading zero is invalid")
        return parse()

    def _validated_float_text(self, operation: str) -> str:
        text = self._read_number_as_string()
        message = validate_float(text)
        if message:
            self.report_error(operation, message)
        return text

    def _parse_float64(self) -> float:
        operation = "readFloat64SlowPath"
        text = self._validated_float_text(operation)
        try:
            return Number(text).float64()
        except ValueError as exc:
            self.report_error(operation, str(exc))

    def _parse_float32(self) -> float:
        operation = "readFloat32SlowPath"
        text = self._validated_float_text(operation)
        try:
            value = Number(text).float64()
            return struct.unpack("<f", struct.pack("<f", value))[0]
        except (ValueError, OverflowError):
            self.report_error(operation, f"value out of range: {text!r}")

    # integers

    def _assert_integer(self) -> None:
        if self.head < self.tail and self.buf[self.head] == _DOT:
            self.report_error("assertInteger", "can not decode float as int")

    def _assert_integer64(self) -> None:
        if (
            self.head < self.tail
            and self.config.convert_string_to_64
            and self.buf[self.head] == _QUOTE
        ):
            self.head += 1
            self._skip_whitespaces_without_load_more()
        self._assert_integer()

    def _read_unsigned(self, c: int, bits: int) -> int:
        operation = "readUint64" if bits == 64 else "readUint32"
        check = self._assert_integer64 if bits == 64 else self._assert_integer
        if c == _ZERO:
            check()
            return 0
        if c not in _DIGITS:
            self.report_error(operation, "unexpected character: " + _describe(c))
        limit = (1 << bits) - 1
        value = c - _ZERO
        while True:
            buf, i, tail = self.buf, self.head, self.tail
            while i < tail:
                b = buf[i]
                if b not in _DIGITS:
                    self.head = i
                    check()
                    return value
                value = value * 10 + (b - _ZERO)
                if value > limit:
                    self.head = i
                    self.report_error(operation, "overflow")
                i += 1
            self.head = tail
            if not self._load_more():
                check()
                return value

    def _read_signed(self, operation: str, bits: int) -> int:
        c = self._next_token()
        wide = bits == 64
        if wide and self.config.convert_string_to_64 and c == _QUOTE:
            c = self._next_token()
        read_bits = 64 if wide else 32
        maximum = (1 << (bits - 1)) - 1
        if c == _MINUS:
            value = self._read_unsigned(self._read_byte(), read_bits)
            if value > maximum + 1:
                self.report_error(operation, f"overflow: {value}")
            return -value
        value = self._read_unsigned(c, read_bits)
        if value > maximum:
            self.report_error(operation, f"overflow: {value}")
        return value

    def _read_small_unsigned(self, operation: str, bits: int) -> int:
        value = self._read_unsigned(self._next_token(), 32)
        if value > (1 << bits) - 1:
            self.report_error(operation, f"overflow: {value}")
        return value

    def read_int8(self) -> int:
        """Read an integer in the int8 range."""
        return self._read_signed("ReadInt8", 8)

    def read_uint8(self) -> int:
        """Read an integer in the uint8 range."""
        return self._read_small_unsigned("ReadUint8", 8)

    def read_int16(self) -> int:
        """Read an integer in the int16 range."""
        return self._read_signed("ReadInt16", 16)

    def read_uint16(self) -> int:
        """Read an integer in the uint16 range."""
        return self._read_small_unsigned("ReadUint16", 16)

    def read_int32(self) -> int:
        """Read an integer in the int32 range."""
        return self._read_signed("ReadInt32", 32)

    def read_uint32(self) -> int:
        """Read an integer in the uint32 range."""
        return self._read_unsigned(self._next_token(), 32)

    def read_int64(self) -> int:
        """Read an integer in the int64 range."""
        return self._read_signed("ReadInt64", 64)

    def read_uint64(self) -> int:
        """Read an integer in the uint64 range."""
        c = self._next_token()
        if self.config.convert_string_to_64 and c == _QUOTE:
            c = self._next_token()
        return self._read_unsigned(c, 64)

    def read_int(self) -> int:
        """Read a platform-width (64-bit) signed integer."""
        return self.read_int64()

    def read_uint(self) -> int:
        """Read a platform-width (64-bit) unsigned integer."""
        return self.read_uint64()