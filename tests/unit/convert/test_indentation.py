"""Unit tests for display indentation."""

from __future__ import annotations

from convert.indentation import indent_json


def test_indent_json_breaks_after_commas_and_openers() -> None:
    """Objects should be split one entry per line."""
    assert indent_json('{"a":1,"b":2}', "\t") == '{\n\t"a":1,\n\t"b":2\n\t}'


def test_indent_json_handles_empty_object() -> None:
    """An empty object receives one line break after its opener."""
    assert indent_json("{}", " ") == "{\n }"


def test_indent_json_ignores_string_contents() -> None:
    """Commas inside strings are treated like structural commas."""
    assert indent_json('["a,b"]', " ") == '[\n "a,\n b"\n ]'
