"""
Value coercion for structured input formats.

JSON values are decoded once into a tagged variant (StringValue,
FloatValue, IntValue, BoolValue) and rendered into their canonical line
protocol text form from there. Field values and timestamp values follow
different rules:

- Field values never fail: anything absent or unsupported renders as an
  empty quoted string.
- Timestamp strings must be strict RFC3339; anything else renders as an
  empty string so the record is written without a timestamp.
"""

import calendar
import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

import numpy as np
from dateutil import parser as date_parser


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class FloatValue:
    value: float


@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class BoolValue:
    value: bool


FieldValue = Union[StringValue, FloatValue, IntValue, BoolValue]

# YYYY-MM-DDTHH:MM:SS[.fraction](Z|+HH:MM|-HH:MM)
_RFC3339_PATTERN = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<offset>Z|[+-]\d{2}:\d{2})$"
)


def to_field_value(raw: Any) -> Optional[FieldValue]:
    """
    Decode a raw JSON value into its tagged variant.

    Args:
        raw: Value as produced by json.load

    Returns:
        The matching variant, or None for null and unsupported types
        (objects, arrays)
    """
    # bool is a subclass of int, check it first
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, int):
        return IntValue(raw)
    if isinstance(raw, float):
        return FloatValue(raw)
    if isinstance(raw, str):
        return StringValue(raw)
    return None


def format_float(value: float) -> str:
    """
    Shortest round-trip decimal representation, never in exponent form.

    Examples:
        >>> format_float(66.6)
        '66.6'
        >>> format_float(55.0)
        '55'
    """
    if math.isnan(value) or math.isinf(value):
        return str(value)
    return np.format_float_positional(value, trim="-")


def format_field_value(value: Optional[FieldValue]) -> str:
    """
    Render a field value as line protocol text.

    float -> shortest decimal, int -> decimal, bool -> true/false,
    string -> double quoted, absent -> "".
    """
    if isinstance(value, FloatValue):
        return format_float(value.value)
    if isinstance(value, IntValue):
        return str(value.value)
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, StringValue):
        return f'"{value.value}"'
    return '""'


def format_timestamp_value(value: Optional[FieldValue], time_multiplier: int) -> str:
    """
    Render a timestamp value as line protocol text.

    Numbers pass through unscaled. RFC3339 strings are converted to
    nanoseconds and divided by the time multiplier so the result is
    expressed in the configured precision.

    Args:
        value: Decoded timestamp value
        time_multiplier: Nanoseconds per unit of the configured precision

    Returns:
        Decimal timestamp string, or "" if the value is absent or
        not valid RFC3339
    """
    if isinstance(value, IntValue):
        return str(value.value)
    if isinstance(value, FloatValue):
        return format_float(value.value)
    if isinstance(value, StringValue):
        ns = parse_rfc3339(value.value)
        if ns is None:
            return ""
        return str(ns // time_multiplier)
    return ""


def parse_rfc3339(value: str) -> Optional[int]:
    """
    Parse a strict RFC3339 timestamp into nanoseconds since the epoch.

    Fractional seconds keep full nanosecond precision.

    Returns:
        Nanosecond timestamp, or None if the string is not RFC3339
    """
    match = _RFC3339_PATTERN.match(value.strip())
    if match is None:
        return None

    try:
        dt = date_parser.isoparse(match.group("base") + match.group("offset"))
    except (ValueError, OverflowError):
        return None

    seconds = calendar.timegm(dt.utctimetuple())
    fraction = match.group("fraction") or ""
    nanos = int(fraction.ljust(9, "0")) if fraction else 0
    return seconds * 1_000_000_000 + nanos


def parse_number_best_effort(value: str) -> Optional[Union[int, float]]:
    """
    Parse a numeric string, trying int first then float.

    Returns:
        The number, or None if the string is not a finite number
    """
    text = value.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def scale_timestamp(value: Union[int, float], time_multiplier: int) -> int:
    """
    Scale a timestamp at the configured precision to nanoseconds.

    Fractional parts are truncated before scaling.

    Examples:
        >>> scale_timestamp(1234567890, 1_000_000_000)
        1234567890000000000
    """
    return int(value) * time_multiplier
