"""Zip archive packing and extraction.

This module converts between a directory tree and a single zip file.
Entry names always use ``/`` separators regardless of the host OS.
Progress is reported to an injected event sink rather than a global logger.
"""

from __future__ import annotations

import io
from pathlib import Path
import shutil
from typing import BinaryIO, Protocol, Union
import zipfile

from core.constants import ZIP_PATH_SEPARATOR
from core.errors import SatchelLocatorError
from core.locators import resolve_locator
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

ArchiveSource = Union[Path, str, BinaryIO]


class ArchiveEventSink(Protocol):
    """Structured event sink used by archive operations."""

    def debug(self, event: str, **fields: object) -> object: ...

    def info(self, event: str, **fields: object) -> object: ...


def extract_archive(
    source: ArchiveSource,
    target_dir: Path,
    sink: ArchiveEventSink | None = None,
) -> int:
    """Extract every entry of a zip archive into a directory.

    Args:
        source: Archive path or readable binary stream.
        target_dir: Directory receiving the entries; created if missing.
        sink: Optional event sink; the module logger when omitted.

    Returns:
        Number of file entries written.

    Raises:
        SatchelLocatorError: If an entry name escapes ``target_dir``.
        zipfile.BadZipFile: If the source is not a zip archive.
        OSError: If reading or writing fails.
    """
    events = sink if sink is not None else _LOGGER
    target_dir.mkdir(parents=True, exist_ok=True)
    file_count = 0
    with zipfile.ZipFile(source) as archive:
        for entry in archive.infolist():
            entry_path = _entry_target(target_dir, entry.filename)
            if entry.is_dir():
                entry_path.mkdir(parents=True, exist_ok=True)
                continue
            entry_path.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(entry) as reader, entry_path.open("wb") as writer:
                shutil.copyfileobj(reader, writer)
            file_count += 1
            events.debug(
                "archive_entry_extracted",
                entry=entry.filename,
                target=str(entry_path),
            )
    events.info("archive_extracted", target=str(target_dir), file_count=file_count)
    return file_count


def pack_directory(
    source_dir: Path,
    destination: ArchiveSource,
    sink: ArchiveEventSink | None = None,
) -> int:
    """Pack a directory tree into a deflate-compressed zip archive.

    Empty directories are kept as ``name/`` entries so they survive a
    save and reopen.

    Args:
        source_dir: Directory to pack.
        destination: Archive path or writable binary stream.
        sink: Optional event sink; the module logger when omitted.

    Returns:
        Number of file entries written.

    Raises:
        OSError: If reading or writing fails.
    """
    events = sink if sink is not None else _LOGGER
    file_count = 0
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(source_dir.rglob("*")):
            entry_name = path.relative_to(source_dir).as_posix()
            if path.is_dir():
                if not any(path.iterdir()):
                    archive.writestr(entry_name + ZIP_PATH_SEPARATOR, b"")
                continue
            archive.write(path, entry_name)
            file_count += 1
    events.info("archive_packed", source=str(source_dir), file_count=file_count)
    return file_count


def pack_directory_bytes(source_dir: Path, sink: ArchiveEventSink | None = None) -> bytes:
    """Pack a directory tree and return the archive bytes."""
    buffer = io.BytesIO()
    pack_directory(source_dir, buffer, sink)
    return buffer.getvalue()


def _entry_target(target_dir: Path, entry_name: str) -> Path:
    """Resolve an entry name under the extraction directory.

    Raises:
        SatchelLocatorError: If the entry escapes the directory.
    """
    try:
        return resolve_locator(target_dir, entry_name, allow_root=True)
    except SatchelLocatorError as error:
        raise SatchelLocatorError(
            f"Archive entry '{entry_name}' would be extracted outside {target_dir}. "
            "Refusing to open an unsafe archive."
        ) from error
