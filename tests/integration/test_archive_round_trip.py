"""Integration test for a full create, save, reopen, and edit cycle."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from xml.etree import ElementTree

from PIL import Image

from core.values import values_equal
from satchel import SatchelConfig, new_archive, open_archive


def test_archive_survives_save_and_reopen(tmp_path: Path) -> None:
    """Every resource kind should persist through the archive file."""
    config = replace(SatchelConfig.from_env(), work_root=tmp_path / "work", json_indent="  ")
    archive_path = tmp_path / "project.sav"
    document = {
        "title": "level one",
        "saved_at": datetime(2021, 6, 1, 12, 30, tzinfo=timezone.utc),
        "checksums": [b"\x00\xff", b"\x10"],
        "layers": [{"name": "ground", "visible": True}],
    }

    with new_archive(config) as manager:
        manager.set_property("meta/info.properties", "author", "collin")
        manager.set_number("meta/info.properties", "version", 2)
        manager.set_image("art/tile.png", Image.new("RGB", (8, 8), "green"))
        manager.set_xml_document("layout.xml", ElementTree.Element("layout", width="8"))
        manager.write_data_map("state/world.json", document)
        manager.save(archive_path)

    with open_archive(archive_path, config) as manager:
        listed = manager.list_sub_resources(recursive=True)
        author = manager.get_property("meta/info.properties", "author")
        version = manager.get_number("meta/info.properties", "version")
        tile = manager.get_image("art/tile.png")
        layout = manager.get_xml_document("layout.xml")
        restored = manager.read_data_map("state/world.json")
        manager.set_number("meta/info.properties", "version", 3)
        manager.save()

    with open_archive(archive_path, config) as manager:
        bumped = manager.get_number("meta/info.properties", "version")

    assert listed == [
        "art/tile.png",
        "layout.xml",
        "meta/info.properties",
        "state/world.json",
    ]
    assert (author, version, bumped) == ("collin", 2, 3)
    assert tile is not None and tile.size == (8, 8)
    assert layout is not None and layout.getroot().get("width") == "8"
    assert values_equal(restored, document)
    assert list((tmp_path / "work").iterdir()) == []
