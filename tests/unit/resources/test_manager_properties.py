"""Unit tests for property and number resources."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import threading

import pytest

from core.config import SatchelConfig
from core.errors import SatchelConversionError
from resources.manager import ArchiveResourceManager
from resources.properties_io import load_properties


class _RecordingSink:
    """Thread-safe event sink that keeps event names."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[str] = []

    def debug(self, event: str, **fields: object) -> None:
        self.info(event, **fields)

    def info(self, event: str, **fields: object) -> None:
        with self._lock:
            self.events.append(event)


def _new_manager(tmp_path: Path, sink: _RecordingSink | None = None) -> ArchiveResourceManager:
    config = replace(SatchelConfig.from_env(), work_root=tmp_path / "work")
    return ArchiveResourceManager.new(config, sink)


def test_get_properties_absent_without_defaults(tmp_path: Path) -> None:
    """A missing resource without defaults should read as None."""
    with _new_manager(tmp_path) as manager:
        properties = manager.get_properties("app.properties")
        created = manager.exists("app.properties")

    assert properties is None and not created


def test_get_properties_creates_from_defaults(tmp_path: Path) -> None:
    """A missing resource should be created from the defaults."""
    with _new_manager(tmp_path) as manager:
        properties = manager.get_properties("config/app.properties", {"mode": "fast"})
        stored = load_properties(manager.working_dir / "config" / "app.properties")

    assert properties == {"mode": "fast"} and stored == {"mode": "fast"}


def test_get_properties_merges_missing_defaults(tmp_path: Path) -> None:
    """Existing keys win and absent default keys are written back."""
    sink = _RecordingSink()
    with _new_manager(tmp_path, sink) as manager:
        manager.set_property("app.properties", "mode", "slow")

        properties = manager.get_properties("app.properties", {"mode": "fast", "retries": "3"})
        stored = load_properties(manager.working_dir / "app.properties")

    assert properties == {"mode": "slow", "retries": "3"} and stored == properties
    assert "properties_defaults_merged" in sink.events


def test_concurrent_get_properties_creates_once(tmp_path: Path) -> None:
    """Racing readers should create the resource once and agree on content."""
    sink = _RecordingSink()
    defaults = {"mode": "fast", "retries": "3"}
    barrier = threading.Barrier(2)
    results: list[dict[str, str] | None] = []
    with _new_manager(tmp_path, sink) as manager:

        def _reader() -> None:
            barrier.wait()
            results.append(manager.get_properties("shared.properties", defaults))

        threads = [threading.Thread(target=_reader) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert results == [defaults, defaults]
    assert sink.events.count("properties_created") == 1
    assert "properties_defaults_merged" not in sink.events


def test_get_property_stores_default(tmp_path: Path) -> None:
    """A default for an absent property should be persisted."""
    with _new_manager(tmp_path) as manager:
        value = manager.get_property("app.properties", "name", "satchel")
        stored = manager.has_property("app.properties", "name")

    assert value == "satchel" and stored


def test_get_property_absent_without_default(tmp_path: Path) -> None:
    """A missing property without a default should read as None."""
    with _new_manager(tmp_path) as manager:
        manager.set_property("app.properties", "other", "x")

        value = manager.get_property("app.properties", "name")

    assert value is None


def test_property_values_keep_non_latin_text(tmp_path: Path) -> None:
    """Text outside Latin-1 should survive the escaped file encoding."""
    with _new_manager(tmp_path) as manager:
        manager.set_property("i18n.properties", "greeting", "héllo ✓ 世界")

        value = manager.get_property("i18n.properties", "greeting")

    assert value == "héllo ✓ 世界"


def test_numbers_keep_integer_and_float_types(tmp_path: Path) -> None:
    """Stored numbers should read back with their numeric type."""
    with _new_manager(tmp_path) as manager:
        manager.set_number("stats.properties", "count", 3)
        manager.set_number("stats.properties", "ratio", 2.5)

        count = manager.get_number("stats.properties", "count")
        ratio = manager.get_number("stats.properties", "ratio")

    assert (count, type(count), ratio, type(ratio)) == (3, int, 2.5, float)


def test_get_number_stores_default(tmp_path: Path) -> None:
    """A numeric default should be written as property text."""
    with _new_manager(tmp_path) as manager:
        value = manager.get_number("stats.properties", "limit", 7)
        text = manager.get_property("stats.properties", "limit")
        known = manager.has_number("stats.properties", "limit")

    assert (value, text, known) == (7, "7", True)


def test_get_number_rejects_non_numeric_text(tmp_path: Path) -> None:
    """Non-numeric property text should fail as a conversion error."""
    with _new_manager(tmp_path) as manager:
        manager.set_property("stats.properties", "count", "many")

        with pytest.raises(SatchelConversionError) as error_info:
            manager.get_number("stats.properties", "count")

    assert (error_info.value.key, error_info.value.raw_text) == ("count", "many")
