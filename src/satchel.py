"""Public SDK surface for Satchel.

This module provides a stable import path for archive users.
It re-exports the resource manager, the JSON converter, and errors.
"""

from __future__ import annotations

from pathlib import Path

from archive.zip_codec import ArchiveEventSink
from convert.indentation import indent_json
from convert.json_converter import parse_data_map, render_data_map, to_document, to_mapping
from core.config import SatchelConfig
from core.errors import (
    SatchelConfigError,
    SatchelConversionError,
    SatchelError,
    SatchelLocatorError,
    SatchelStateError,
    SatchelStoreError,
)
from resources.manager import ArchiveResourceManager


def open_archive(
    archive_path: Path | str,
    config: SatchelConfig | None = None,
    event_sink: ArchiveEventSink | None = None,
) -> ArchiveResourceManager:
    """Open an existing zip archive for typed resource access.

    Args:
        archive_path: Archive file to unpack.
        config: Optional runtime config; read from the environment when None.
        event_sink: Optional structured event sink.

    Returns:
        Open resource manager. Close it, or use it as a context manager.
    """
    return ArchiveResourceManager.open(archive_path, config, event_sink)


def new_archive(
    config: SatchelConfig | None = None,
    event_sink: ArchiveEventSink | None = None,
) -> ArchiveResourceManager:
    """Create an empty archive that is saved with an explicit destination."""
    return ArchiveResourceManager.new(config, event_sink)


__all__ = [
    "ArchiveResourceManager",
    "SatchelConfig",
    "SatchelConfigError",
    "SatchelConversionError",
    "SatchelError",
    "SatchelLocatorError",
    "SatchelStateError",
    "SatchelStoreError",
    "indent_json",
    "new_archive",
    "open_archive",
    "parse_data_map",
    "render_data_map",
    "to_document",
    "to_mapping",
]
