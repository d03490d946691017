"""Tests for SQL literal encoding of single cells."""

import struct
from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest

from db_backup.backup.encoder import Float32, encode_value, escape_string, format_float32


def _unescape(literal: str) -> str:
    """Reverse a quoted, backslash-escaped literal back to its text."""
    assert literal.startswith("'") and literal.endswith("'")
    body = literal[1:-1]
    mapping = {"\\": "\\", "'": "'", '"': '"', "n": "\n", "r": "\r", "0": "\0"}
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\":
            out.append(mapping[body[i + 1]])
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


# ------------------------------------------------------------------
# NULL and unclassifiable values
# ------------------------------------------------------------------


class TestNull:
    def test_none_is_null(self):
        assert encode_value(None) == "NULL"

    def test_unknown_type_is_null(self):
        assert encode_value(object()) == "NULL"
        assert encode_value({"a": 1}) == "NULL"

    def test_non_finite_float_is_null(self):
        assert encode_value(float("inf")) == "NULL"
        assert encode_value(float("nan")) == "NULL"

    def test_non_finite_decimal_is_null(self):
        assert encode_value(Decimal("NaN")) == "NULL"


# ------------------------------------------------------------------
# Strings and bytes
# ------------------------------------------------------------------


class TestStrings:
    def test_plain_text_quoted(self):
        assert encode_value("hello") == "'hello'"

    def test_utf8_bytes_quoted(self):
        assert encode_value("héllo".encode("utf-8")) == "'héllo'"

    def test_non_utf8_bytes_hex(self):
        assert encode_value(b"\xff\xfe\x00\x01") == "X'fffe0001'"

    def test_empty_bytes_quoted(self):
        assert encode_value(b"") == "''"

    def test_bytearray_and_memoryview(self):
        assert encode_value(bytearray(b"ab")) == "'ab'"
        assert encode_value(memoryview(b"\x80")) == "X'80'"

    def test_each_special_character_escaped(self):
        assert escape_string("\\") == "\\\\"
        assert escape_string("'") == "\\'"
        assert escape_string('"') == '\\"'
        assert escape_string("\n") == "\\n"
        assert escape_string("\r") == "\\r"
        assert escape_string("\0") == "\\0"

    def test_backslash_escaped_first(self):
        """An existing backslash before a quote is not double-escaped."""
        assert escape_string("\\'") == "\\\\\\'"

    @pytest.mark.parametrize(
        "text",
        [
            "it's",
            'say "hi"',
            "line1\nline2\r\n",
            "nul\0byte",
            "C:\\path\\to\\file",
            "\\n is not a newline",
            "mixed \\ ' \" \n \r \0 end",
        ],
    )
    def test_unescape_reproduces_original(self, text):
        assert _unescape(encode_value(text)) == text
        assert _unescape(encode_value(text.encode("utf-8"))) == text

    def test_binary_round_trips_through_hex(self):
        payload = bytes(range(256))
        literal = encode_value(payload)
        assert literal.startswith("X'") and literal.endswith("'")
        assert bytes.fromhex(literal[2:-1]) == payload


# ------------------------------------------------------------------
# Numbers
# ------------------------------------------------------------------


class TestNumbers:
    def test_integers(self):
        assert encode_value(0) == "0"
        assert encode_value(-42) == "-42"
        assert encode_value(18446744073709551615) == "18446744073709551615"

    def test_bool(self):
        assert encode_value(True) == "1"
        assert encode_value(False) == "0"

    @pytest.mark.parametrize("value", [0.1, 1.5, -2.25, 1e-7, 123456789.125, 5e300])
    def test_double_round_trips(self, value):
        assert float(encode_value(value)) == value

    def test_double_uses_shortest_form(self):
        assert encode_value(0.1) == "0.1"

    @pytest.mark.parametrize("value", [0.1, 3.14159, -1.5, 1e-5, 16777217.0, 3.4e38])
    def test_float32_round_trips_bit_exact(self, value):
        cell = Float32(struct.unpack("<f", struct.pack("<f", value))[0])
        literal = encode_value(cell)
        assert struct.pack("<f", float(literal)) == struct.pack("<f", cell)

    def test_float32_shorter_than_double(self):
        cell = Float32(struct.unpack("<f", struct.pack("<f", 0.1))[0])
        assert encode_value(cell) == "0.1"
        assert format_float32(cell) == "0.1"

    def test_decimal_unquoted(self):
        assert encode_value(Decimal("12.50")) == "12.50"


# ------------------------------------------------------------------
# Dates and times
# ------------------------------------------------------------------


class TestTemporal:
    def test_datetime(self):
        value = datetime(2024, 3, 5, 7, 8, 9, 12)
        assert encode_value(value) == "'2024-03-05 07:08:09.000012'"

    def test_date_is_midnight_datetime(self):
        assert encode_value(date(999, 1, 2)) == "'0999-01-02 00:00:00.000000'"

    def test_positive_timedelta(self):
        value = timedelta(hours=5, minutes=4, seconds=3, microseconds=2)
        assert encode_value(value) == "'05:04:03.000002'"

    def test_days_folded_into_hours(self):
        value = timedelta(days=2, hours=3, minutes=15)
        assert encode_value(value) == "'51:15:00.000000'"

    def test_negative_timedelta(self):
        value = -timedelta(hours=1, minutes=30, microseconds=500)
        assert encode_value(value) == "'-01:30:00.000500'"

    def test_negative_multi_day(self):
        value = -timedelta(days=1, hours=1)
        assert encode_value(value) == "'-25:00:00.000000'"

    def test_time_of_day(self):
        assert encode_value(time(23, 59, 58, 1)) == "'23:59:58.000001'"
