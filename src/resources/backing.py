"""Archive backings for the resource manager.

A backing decides how a fresh working directory is populated and where
``save`` writes by default. The manager holds all shared behavior.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from archive.zip_codec import ArchiveEventSink, extract_archive


class ArchiveBacking(Protocol):
    """Origin of an archive's working directory contents."""

    @property
    def label(self) -> str: ...

    def populate(self, working_dir: Path, sink: ArchiveEventSink) -> None: ...

    def default_destination(self) -> Path | None: ...


@dataclass(frozen=True)
class ZipArchiveBacking:
    """Backing that unpacks an existing zip archive and saves back to it."""

    archive_path: Path

    @property
    def label(self) -> str:
        return self.archive_path.stem or "archive"

    def populate(self, working_dir: Path, sink: ArchiveEventSink) -> None:
        """Extract the source archive into the working directory."""
        extract_archive(self.archive_path, working_dir, sink)

    def default_destination(self) -> Path | None:
        return self.archive_path


@dataclass(frozen=True)
class EmptyArchiveBacking:
    """Backing for a new archive that starts with no resources."""

    label: str = "new"

    def populate(self, working_dir: Path, sink: ArchiveEventSink) -> None:
        """Leave the working directory empty."""

    def default_destination(self) -> Path | None:
        return None
