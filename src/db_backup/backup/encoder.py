"""Render single database cells as SQL literals.

``encode_value`` never raises: a cell it cannot classify is written as
``NULL`` so that one odd value does not fail the whole table.

Examples:
    >>> encode_value(None)
    'NULL'
    >>> encode_value("it's")
    "'it\\\\'s'"
    >>> encode_value(b"\\xff\\x00")
    "X'ff00'"
    >>> encode_value(timedelta(days=1, hours=2, minutes=3))
    "'26:03:00.000000'"
"""

import logging
import math
import struct
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

logger = logging.getLogger(__name__)

# Applied in order; backslash must come first
_ESCAPES = (
    ("\\", "\\\\"),
    ("'", "\\'"),
    ('"', '\\"'),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\0", "\\0"),
)


class Float32(float):
    """A ``float`` that came from a single-precision column.

    Rendered with the shortest decimal that maps back to the same 32-bit
    value, instead of the longer double-precision ``repr``.
    """

    def __repr__(self) -> str:
        return format_float32(self)


def format_float32(value: float) -> str:
    """Shortest decimal text that round-trips through IEEE single precision."""
    try:
        target = struct.pack("<f", value)
    except OverflowError:
        # Outside single-precision range; keep the double rendering
        return float.__repr__(value)
    for precision in range(1, 10):
        candidate = f"{value:.{precision}g}"
        if struct.pack("<f", float(candidate)) == target:
            return candidate
    return float.__repr__(value)


def escape_string(text: str) -> str:
    """Escape backslash, quotes, newline, carriage return and NUL."""
    for char, replacement in _ESCAPES:
        text = text.replace(char, replacement)
    return text


def _quote(text: str) -> str:
    return f"'{escape_string(text)}'"


def _format_datetime(value: datetime) -> str:
    return (
        f"'{value.year:04d}-{value.month:02d}-{value.day:02d} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}."
        f"{value.microsecond:06d}'"
    )


def _format_duration(negative: bool, hours: int, minutes: int, seconds: int, micros: int) -> str:
    sign = "-" if negative else ""
    return f"'{sign}{hours:02d}:{minutes:02d}:{seconds:02d}.{micros:06d}'"


def _format_timedelta(value: timedelta) -> str:
    negative = value < timedelta(0)
    magnitude = -value if negative else value
    # days folded into hours
    hours = magnitude.days * 24 + magnitude.seconds // 3600
    minutes = (magnitude.seconds % 3600) // 60
    seconds = magnitude.seconds % 60
    return _format_duration(negative, hours, minutes, seconds, magnitude.microseconds)


def encode_value(value: Any) -> str:
    """Encode one cell as a SQL literal suitable for re-insertion.

    Args:
        value: Cell value as delivered by the database driver.

    Returns:
        Literal text: ``NULL``, a quoted string, a hex literal, or an
        unquoted number.
    """
    if value is None:
        return "NULL"

    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            return _quote(raw.decode("utf-8"))
        except UnicodeDecodeError:
            return f"X'{raw.hex()}'"

    if isinstance(value, str):
        return _quote(value)

    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "1" if value else "0"

    if isinstance(value, int):
        return str(value)

    if isinstance(value, float):
        if not math.isfinite(value):
            logger.debug("Encoding non-finite float %r as NULL", value)
            return "NULL"
        return repr(value)

    if isinstance(value, Decimal):
        if not value.is_finite():
            logger.debug("Encoding non-finite decimal %r as NULL", value)
            return "NULL"
        return str(value)

    if isinstance(value, datetime):
        return _format_datetime(value)

    if isinstance(value, date):
        return _format_datetime(datetime(value.year, value.month, value.day))

    if isinstance(value, timedelta):
        return _format_timedelta(value)

    if isinstance(value, time):
        return _format_duration(
            False, value.hour, value.minute, value.second, value.microsecond
        )

    logger.debug("Cannot encode value of type %s, writing NULL", type(value).__name__)
    return "NULL"
