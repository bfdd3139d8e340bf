"""Number <-> property text conversion."""

from __future__ import annotations

from decimal import Decimal
import math
import numbers

_POSITIVE_INFINITY_TEXT = ("inf", "+inf", "Infinity", "+Infinity")
_NEGATIVE_INFINITY_TEXT = ("-inf", "-Infinity")
_NAN_TEXT = ("nan", "NaN")


def parse_number(text: str) -> int | float:
    """Parse stored property text as a number.

    Text with a decimal point or exponent is a float, anything else an int.

    Raises:
        ValueError: If the text is not a number.
    """
    stripped = text.strip()
    if stripped in _POSITIVE_INFINITY_TEXT:
        return math.inf
    if stripped in _NEGATIVE_INFINITY_TEXT:
        return -math.inf
    if stripped in _NAN_TEXT:
        return math.nan
    if any(marker in stripped for marker in (".", "e", "E")):
        return float(stripped)
    return int(stripped)


def format_number(value: numbers.Number | Decimal) -> str:
    """Render a number as property text readable by ``parse_number``.

    Raises:
        TypeError: If the value is a bool or not a real number.
    """
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        raise TypeError(f"Expected a real number, got {type(value).__name__}")
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, Decimal):
        return str(value) if value.is_finite() else format_number(float(value))
    return repr(float(value))
