"""Unit tests for data map <-> JSON document conversion."""

from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
import json

import pytest

from convert.json_converter import parse_data_map, render_data_map, to_document, to_mapping
from core.errors import SatchelConversionError
from core.values import values_equal

_FIRST = datetime(2020, 1, 1, tzinfo=timezone.utc)
_SECOND = datetime(2015, 7, 23, 14, 34, 5, 980000, tzinfo=timezone.utc)


def _sample_mapping() -> dict[str, object]:
    return {
        "name": "satchel",
        "count": 3,
        "ratio": 0.5,
        "enabled": True,
        "missing": None,
        "created": datetime(2021, 3, 4, 5, 6, 7, 123456, tzinfo=timezone.utc),
        "payload": bytes(range(256)),
        "history": [_FIRST, _SECOND],
        "chunks": [b"\x00\x01", b"\xff"],
        "nested": {"updated": _SECOND, "tags": ["a", "b"], "deep": {"level": 2}},
        "mixed": [1, "two", None, [3.5, False]],
        "empty": [],
    }


def test_round_trip_preserves_supported_values() -> None:
    """Converting to a document and back should restore the map."""
    mapping = _sample_mapping()

    restored = to_mapping(to_document(mapping))

    assert values_equal(restored, mapping)


def test_text_round_trip_preserves_supported_values() -> None:
    """Rendering to JSON text and parsing back should restore the map."""
    mapping = _sample_mapping()

    restored = parse_data_map(render_data_map(mapping))

    assert values_equal(restored, mapping)


def test_document_conversion_is_idempotent() -> None:
    """A converted document should survive another full cycle unchanged."""
    document = to_document(_sample_mapping())

    assert to_document(to_mapping(document)) == document


def test_timestamp_key_receives_time_suffix() -> None:
    """Timestamps should be written as instant text under a suffixed key."""
    assert to_document({"t": _FIRST}) == {"t@ISOtime": "2020-01-01T00:00:00Z"}


def test_time_suffix_is_stripped_on_read() -> None:
    """Suffixed instant text should read back as an aware datetime."""
    assert to_mapping({"t@ISOtime": "2020-01-01T00:00:00Z"}) == {"t": _FIRST}


def test_timestamp_array_uses_suffix_both_ways() -> None:
    """Homogeneous timestamp lists should carry the suffix on their key."""
    document = to_document({"t": [_FIRST, _SECOND]})
    restored = to_mapping(document)

    assert document == {
        "t@ISOtime": ["2020-01-01T00:00:00Z", "2015-07-23T14:34:05.980Z"]
    } and restored == {"t": [_FIRST, _SECOND]}


def test_binary_round_trip_covers_every_byte() -> None:
    """All byte values should survive base64 tagging."""
    payload = bytes(range(256))

    document = to_document({"b": payload})

    assert document == {"b@base64": base64.b64encode(payload).decode("ascii")}
    assert to_mapping(document) == {"b": payload}


def test_timestamps_are_normalized_to_utc() -> None:
    """Offset-aware timestamps should be written as UTC instants."""
    local = datetime(2020, 1, 1, 2, tzinfo=timezone(timedelta(hours=2)))

    assert to_document({"t": local}) == {"t@ISOtime": "2020-01-01T00:00:00Z"}


def test_malformed_timestamp_names_stripped_key() -> None:
    """A malformed instant should fail naming the key without its suffix."""
    with pytest.raises(SatchelConversionError) as error_info:
        to_mapping({"t@ISOtime": "yesterday"})

    error = error_info.value
    assert (error.key, error.raw_key, error.raw_text) == ("t", "t@ISOtime", "yesterday")


def test_malformed_base64_names_nested_path() -> None:
    """Decode errors in nested objects should report the full path."""
    with pytest.raises(SatchelConversionError) as error_info:
        to_mapping({"outer": {"b@base64": "not base64!"}})

    assert error_info.value.path == ("outer", "b")


def test_naive_timestamp_fails_to_store() -> None:
    """Naive datetimes name no instant and should be rejected."""
    with pytest.raises(SatchelConversionError) as error_info:
        to_document({"when": datetime(2020, 1, 1)})

    assert error_info.value.key == "when"


def test_unsupported_value_fails_to_store() -> None:
    """Objects outside the value model should be rejected with their key."""
    with pytest.raises(SatchelConversionError, match="Failed to store entry 'outer.bad'"):
        to_document({"outer": {"bad": object()}})


def test_non_finite_float_fails_to_store() -> None:
    """NaN has no JSON form and should be rejected."""
    with pytest.raises(SatchelConversionError):
        to_document({"x": float("nan")})


def test_integer_beyond_int64_is_written_as_float() -> None:
    """Integers outside the 64-bit range should degrade to floats."""
    document = to_document({"big": 2**70, "small": 2**62})

    assert document == {"big": float(2**70), "small": 2**62}


def test_none_keys_are_skipped() -> None:
    """Entries with a None key should not be written."""
    assert to_document({None: 1, "kept": 2}) == {"kept": 2}


def test_mixed_list_with_timestamp_fails_to_store() -> None:
    """A timestamp in a mixed list cannot be tagged and should be rejected."""
    with pytest.raises(SatchelConversionError) as error_info:
        to_document({"m": [_FIRST, 1]})

    assert (error_info.value.key, error_info.value.path) == ("m", ("m", "[0]"))


def test_nested_list_with_blob_fails_to_store() -> None:
    """A blob inside a nested list cannot be tagged and should be rejected."""
    with pytest.raises(SatchelConversionError, match="cannot be tagged") as error_info:
        to_document({"n": ["x", [b"\x00"]]})

    assert error_info.value.path == ("n", "[1]", "[0]")


def test_timestamps_inside_mappings_in_lists_round_trip() -> None:
    """Mappings nested in a generic list should still tag their own keys."""
    mapping = {"events": [{"at": _FIRST, "raw": b"\x01"}, "note"]}

    assert values_equal(to_mapping(to_document(mapping)), mapping)


def test_parse_data_map_rejects_malformed_json() -> None:
    """Broken JSON text should raise a conversion error."""
    with pytest.raises(SatchelConversionError, match="Malformed JSON document"):
        parse_data_map("{not json")


def test_parse_data_map_rejects_nan_constant() -> None:
    """Non-standard JSON constants should be rejected."""
    with pytest.raises(SatchelConversionError):
        parse_data_map('{"a": NaN}')


def test_parse_data_map_requires_object() -> None:
    """Top-level JSON arrays are not data maps."""
    with pytest.raises(SatchelConversionError):
        parse_data_map("[1, 2]")


def test_render_data_map_is_compact_by_default() -> None:
    """Rendering without an indent unit should produce compact JSON."""
    text = render_data_map({"a": 1, "b": "é"})

    assert text == '{"a":1,"b":"é"}' and json.loads(text) == {"a": 1, "b": "é"}


def test_render_data_map_indents_when_requested() -> None:
    """Rendering with an indent unit should apply display indentation."""
    text = render_data_map({"a": 1, "b": [1, 2]}, "  ")

    assert text == '{\n  "a":1,\n  "b":[\n    1,\n    2\n    ]\n  }'
