"""Dynamically typed value model.

This module names the closed set of value kinds a data map may hold and
classifies Python runtime objects into them. The JSON conversion engine
dispatches on these kinds instead of on raw ``isinstance`` chains.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal
import math
import numbers
from typing import Dict, List, Literal, Union

from core.errors import SatchelConversionError

Value = Union[
    None,
    bool,
    int,
    float,
    str,
    datetime,
    bytes,
    List["Value"],
    Dict[str, "Value"],
]
DataMap = Dict[str, Value]

ValueKind = Literal[
    "null",
    "boolean",
    "integer",
    "float",
    "text",
    "timestamp",
    "binary",
    "list",
    "mapping",
]
ElementCategory = Literal["timestamp", "binary", "other"]
ListShape = Literal["timestamps", "binaries", "generic"]

BINARY_TYPES = (bytes, bytearray, memoryview)


def classify_value(value: object) -> ValueKind:
    """Return the value kind for a runtime object.

    Args:
        value: Candidate data map value.

    Returns:
        The matching value kind.

    Raises:
        SatchelConversionError: If the object has no supported kind.
    """
    if value is None:
        return "null"
    # bool is an int subclass and must be checked first
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, numbers.Integral):
        return "integer"
    if isinstance(value, (numbers.Real, Decimal)):
        return "float"
    if isinstance(value, str):
        return "text"
    if isinstance(value, datetime):
        return "timestamp"
    if isinstance(value, BINARY_TYPES):
        return "binary"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "list"
    raise SatchelConversionError(f"Cannot store object of type {type(value).__qualname__}")


def element_category(value: object) -> ElementCategory:
    """Classify a list element for list homogeneity checks."""
    if isinstance(value, datetime):
        return "timestamp"
    if isinstance(value, BINARY_TYPES):
        return "binary"
    return "other"


def classify_list(values: Sequence[object]) -> ListShape:
    """Return whether a list is all timestamps, all binary, or generic.

    An empty list is generic so it never receives a type suffix.
    """
    if not values:
        return "generic"
    categories = {element_category(item) for item in values}
    if categories == {"timestamp"}:
        return "timestamps"
    if categories == {"binary"}:
        return "binaries"
    return "generic"


def values_equal(left: object, right: object) -> bool:
    """Compare two values structurally.

    Tuples compare equal to lists, any binary type compares equal to
    ``bytes`` with the same content, and NaN floats compare equal.

    Args:
        left: First value.
        right: Second value.

    Returns:
        Whether both values hold the same data.
    """
    if isinstance(left, BINARY_TYPES) and isinstance(right, BINARY_TYPES):
        return bytes(left) == bytes(right)
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left.keys()) != set(right.keys()):
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, float) and isinstance(right, float):
        if math.isnan(left) and math.isnan(right):
            return True
    return left == right
