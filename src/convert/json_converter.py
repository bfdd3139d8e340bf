"""Bidirectional conversion between data maps and JSON documents.

JSON has no timestamp or binary type, so those values are written as
text and their mapping key receives a type suffix (``@ISOtime`` or
``@base64``). Reading strips the suffix and decodes the text, so any map
built from supported value kinds survives a write/read cycle. Timestamps and
blobs inside mixed or nested lists have no key to tag and are rejected.
Keys that already end with a suffix but hold another kind are not
supported.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
import json
import math
from typing import Any, Callable, assert_never, cast

from convert.indentation import indent_json
from convert.scalar_codecs import decode_binary, encode_binary, format_instant, parse_instant
from core.constants import BINARY_SUFFIX, INT64_MAX, INT64_MIN, TIME_SUFFIX
from core.errors import SatchelConversionError
from core.values import DataMap, ValueKind, classify_list, classify_value

JsonDocument = dict[str, Any]


def to_document(mapping: Mapping[str, object]) -> JsonDocument:
    """Convert a data map into a JSON-native document.

    Args:
        mapping: Map from text keys to supported values. Entries with a
            None key are skipped.

    Returns:
        Document made only of JSON types.

    Raises:
        SatchelConversionError: For the first entry that cannot be stored.
    """
    return _build_object(mapping, ())


def to_mapping(document: Mapping[str, Any]) -> DataMap:
    """Convert a JSON document back into a data map.

    Args:
        document: Parsed JSON object.

    Returns:
        Data map with timestamps and binary values restored.

    Raises:
        SatchelConversionError: For the first entry that cannot be read.
    """
    if not isinstance(document, Mapping):
        raise SatchelConversionError(
            f"Expected a JSON object at the top level, got {type(document).__name__}"
        )
    return _read_object(document, ())


def render_data_map(mapping: Mapping[str, object], indent_unit: str | None = None) -> str:
    """Serialize a data map as JSON text.

    Args:
        mapping: Data map to serialize.
        indent_unit: Optional indent unit; compact JSON when None.

    Returns:
        JSON text.
    """
    text = json.dumps(
        to_document(mapping),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    if indent_unit:
        return indent_json(text, indent_unit)
    return text


def parse_data_map(text: str) -> DataMap:
    """Parse JSON text into a data map.

    Args:
        text: Strict JSON text holding an object.

    Returns:
        Converted data map.

    Raises:
        SatchelConversionError: If the text is not a strict JSON object or
            an entry cannot be converted.
    """
    try:
        payload = json.loads(text, parse_constant=_reject_constant)
    except ValueError as error:
        raise SatchelConversionError(f"Malformed JSON document: {error}") from error
    return to_mapping(payload)


def _reject_constant(name: str) -> object:
    """Refuse the ``NaN``/``Infinity`` extensions of the json module."""
    raise ValueError(f"Non-standard JSON constant {name}")


def _build_object(mapping: Mapping[Any, object], path: tuple[str, ...]) -> JsonDocument:
    """Build a JSON object from one mapping level.

    Args:
        mapping: Mapping whose entries are converted in order.
        path: Keys and list indexes leading to this mapping.

    Returns:
        JSON object with suffixed keys where needed.

    Raises:
        SatchelConversionError: If a key is not text or a value cannot be stored.
    """
    document: JsonDocument = {}
    for key, value in mapping.items():
        if key is None:
            continue
        if not isinstance(key, str):
            raise _store_error(
                f"keys must be text, got {type(key).__name__}", str(key), path + (str(key),)
            )
        name, encoded = _build_entry(key, value, path + (key,))
        document[name] = encoded
    return document


def _build_entry(key: str, value: object, path: tuple[str, ...]) -> tuple[str, object]:
    """Convert one mapping entry, choosing the key suffix.

    Timestamps, blobs, and lists holding only one of those kinds get a
    type suffix. Every other value keeps its key unchanged.

    Args:
        key: Mapping key without a suffix.
        value: Entry value.
        path: Path to the entry, ending with ``key``.

    Returns:
        Stored key and JSON value.
    """
    kind = _kind_of(value, key, path)
    if kind == "timestamp":
        return key + TIME_SUFFIX, _encode_instant(value, key, path)
    if kind == "binary":
        return key + BINARY_SUFFIX, encode_binary(cast(bytes, value))
    if kind == "list":
        items = cast(Sequence[object], value)
        shape = classify_list(items)
        if shape == "timestamps":
            return key + TIME_SUFFIX, [
                _encode_instant(item, key, path + (f"[{index}]",))
                for index, item in enumerate(items)
            ]
        if shape == "binaries":
            return key + BINARY_SUFFIX, [encode_binary(cast(bytes, item)) for item in items]
        return key, _build_array(items, key, path)
    return key, _build_element(value, key, path)


def _build_array(items: Sequence[object], key: str, path: tuple[str, ...]) -> list[object]:
    """Convert a generic list element by element.

    Args:
        items: List items.
        key: Key owning the list, used in error reports.
        path: Path to the list.

    Returns:
        JSON array.
    """
    return [
        _build_element(item, key, path + (f"[{index}]",)) for index, item in enumerate(items)
    ]


def _build_element(value: object, key: str, path: tuple[str, ...]) -> object:
    """Convert a value that cannot carry a key suffix.

    Args:
        value: Untagged value: an entry value or a generic list item.
        key: Nearest mapping key, used in error reports.
        path: Path to the value.

    Returns:
        JSON value.

    Raises:
        SatchelConversionError: If the value is a timestamp or blob, which
            would lose its type without a suffix, or cannot be stored.
    """
    kind: ValueKind = _kind_of(value, key, path)
    if kind == "null":
        return None
    if kind == "boolean":
        return bool(value)
    if kind == "integer":
        return _encode_integer(value, key, path)
    if kind == "float":
        return _encode_float(value, key, path)
    if kind == "text":
        return str(value)
    if kind == "timestamp":
        raise _untagged_error(kind, key, path)
    if kind == "binary":
        raise _untagged_error(kind, key, path)
    if kind == "mapping":
        return _build_object(cast(Mapping[Any, object], value), path)
    if kind == "list":
        return _build_array(cast(Sequence[object], value), key, path)
    assert_never(kind)


def _kind_of(value: object, key: str, path: tuple[str, ...]) -> ValueKind:
    """Classify a value, reporting unsupported objects as store errors."""
    try:
        return classify_value(value)
    except SatchelConversionError as error:
        raise _store_error(str(error), key, path) from error


def _encode_integer(value: object, key: str, path: tuple[str, ...]) -> int | float:
    """Return an int64-range integer as is, anything wider as a float."""
    number = int(cast(int, value))
    if INT64_MIN <= number <= INT64_MAX:
        return number
    return _encode_float(number, key, path)


def _encode_float(value: object, key: str, path: tuple[str, ...]) -> float:
    """Convert a real number to a finite float.

    Raises:
        SatchelConversionError: If the number overflows or is not finite.
    """
    try:
        number = float(cast(float, value))
    except OverflowError as error:
        raise _store_error(f"number {value} does not fit a double", key, path) from error
    if not math.isfinite(number):
        raise _store_error(f"non-finite number {value} has no JSON form", key, path)
    return number


def _encode_instant(value: object, key: str, path: tuple[str, ...]) -> str:
    """Format a timestamp, reporting naive datetimes as store errors."""
    try:
        return format_instant(cast(datetime, value))
    except (ValueError, OverflowError) as error:
        raise _store_error(str(error), key, path) from error


def _untagged_error(kind: str, key: str, path: tuple[str, ...]) -> SatchelConversionError:
    """Build the error for a timestamp or blob inside a generic list."""
    return _store_error(
        f"a {kind} inside a mixed or nested list cannot be tagged; "
        f"store {kind} values in a list of their own under a separate key",
        key,
        path,
    )


def _store_error(detail: str, key: str, path: tuple[str, ...]) -> SatchelConversionError:
    """Build a conversion error for a value that cannot be written.

    Args:
        detail: Cause description.
        key: Offending mapping key.
        path: Path to the offending value.

    Returns:
        Error naming the entry path.
    """
    return SatchelConversionError(
        f"Failed to store entry '{_render_path(path)}': {detail}",
        key=key,
        path=path,
    )


def _read_object(json_object: Mapping[str, Any], path: tuple[str, ...]) -> DataMap:
    """Convert one JSON object level back into a data map.

    Suffixed keys are stripped and their values decoded; arrays under a
    suffixed key are decoded element by element.

    Args:
        json_object: Parsed JSON object.
        path: Keys and list indexes leading to this object.

    Returns:
        Data map with restored timestamps and blobs.
    """
    result: DataMap = {}
    for raw_key, node in json_object.items():
        decoder: Callable[[str], object] | None = None
        key = raw_key
        if raw_key.endswith(TIME_SUFFIX):
            key, decoder = raw_key.removesuffix(TIME_SUFFIX), parse_instant
        elif raw_key.endswith(BINARY_SUFFIX):
            key, decoder = raw_key.removesuffix(BINARY_SUFFIX), decode_binary
        entry_path = path + (key,)
        if decoder is None:
            result[key] = _read_node(node, key, raw_key, entry_path)
        elif isinstance(node, list):
            result[key] = [
                _decode_text(decoder, item, key, raw_key, entry_path + (f"[{index}]",))
                for index, item in enumerate(node)
            ]
        else:
            result[key] = _decode_text(decoder, node, key, raw_key, entry_path)
    return result


def _read_node(node: object, key: str, raw_key: str, path: tuple[str, ...]) -> Any:
    """Convert an untagged JSON node by its JSON kind.

    Raises:
        SatchelConversionError: If the node is not a JSON type.
    """
    if node is None or isinstance(node, (bool, int, float, str)):
        return node
    if isinstance(node, Mapping):
        return _read_object(node, path)
    if isinstance(node, list):
        return [
            _read_node(item, key, raw_key, path + (f"[{index}]",))
            for index, item in enumerate(node)
        ]
    raise _parse_error("unsupported JSON node", node, key, raw_key, path)


def _decode_text(
    decoder: Callable[[str], object],
    node: object,
    key: str,
    raw_key: str,
    path: tuple[str, ...],
) -> Any:
    """Decode tagged text, reporting failures as parse errors.

    Args:
        decoder: Instant or base64 decoder.
        node: JSON node expected to hold text.
        key: Key with the suffix removed.
        raw_key: Key as it appeared in the document.
        path: Path to the node.

    Returns:
        Decoded timestamp or bytes.
    """
    try:
        return decoder(cast(str, node))
    except ValueError as error:
        raise _parse_error(str(error), node, key, raw_key, path) from error


def _parse_error(
    detail: str,
    node: object,
    key: str,
    raw_key: str,
    path: tuple[str, ...],
) -> SatchelConversionError:
    """Build a conversion error for a node that cannot be read.

    Args:
        detail: Cause description.
        node: Offending JSON node.
        key: Key with the suffix removed.
        raw_key: Key as it appeared in the document.
        path: Path to the node.

    Returns:
        Error carrying the raw key and raw text.
    """
    raw_text = node if isinstance(node, str) else repr(node)
    return SatchelConversionError(
        f'Error while parsing entry "{raw_key}" at {_render_path(path)}: {raw_text} ({detail})',
        key=key,
        raw_key=raw_key,
        path=path,
        raw_text=raw_text,
    )


def _render_path(path: tuple[str, ...]) -> str:
    """Render a path as ``outer.inner[2].leaf`` for messages."""
    rendered = ""
    for segment in path:
        if segment.startswith("[") or not rendered:
            rendered += segment
        else:
            rendered += f".{segment}"
    return rendered or "<root>"
