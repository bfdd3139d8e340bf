"""Locator normalization helpers.

This module turns caller locators into safe relative paths.
Locators are shared by the resource manager and archive extraction.
"""

from __future__ import annotations

from pathlib import Path, PurePath, PurePosixPath

from core.constants import ZIP_PATH_SEPARATOR
from core.errors import SatchelLocatorError

Locator = str | PurePath


def normalize_locator(locator: Locator) -> str:
    """Normalize a locator into a canonical POSIX relative path.

    ``.`` and empty segments are dropped and ``..`` segments are resolved
    against the preceding segment. The store root is the empty string.

    Args:
        locator: Slash-separated relative path or path object.

    Returns:
        Canonical locator text.

    Raises:
        SatchelLocatorError: If the locator is absolute or escapes the root.
    """
    raw_text = locator.as_posix() if isinstance(locator, PurePath) else str(locator)
    raw_text = raw_text.replace("\\", ZIP_PATH_SEPARATOR)
    if raw_text.startswith(ZIP_PATH_SEPARATOR) or PurePosixPath(raw_text).is_absolute():
        raise SatchelLocatorError(
            f"Locator '{raw_text}' is absolute. Use a path relative to the archive root."
        )
    if len(raw_text) >= 2 and raw_text[1] == ":":
        raise SatchelLocatorError(
            f"Locator '{raw_text}' names a drive. Use a path relative to the archive root."
        )
    segments: list[str] = []
    for segment in raw_text.split(ZIP_PATH_SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise SatchelLocatorError(
                    f"Locator '{raw_text}' escapes the archive root. "
                    "Remove parent-directory segments that climb above it."
                )
            segments.pop()
            continue
        segments.append(segment)
    return ZIP_PATH_SEPARATOR.join(segments)


def resolve_locator(root: Path, locator: Locator, allow_root: bool = False) -> Path:
    """Resolve a locator to a path under ``root``.

    Args:
        root: Working directory acting as the store root.
        locator: Caller locator.
        allow_root: Whether the empty locator (the root itself) is accepted.

    Returns:
        Absolute path inside ``root``.

    Raises:
        SatchelLocatorError: If the locator is unsafe or names the root
            when a resource is required.
    """
    normalized = normalize_locator(locator)
    if not normalized and not allow_root:
        raise SatchelLocatorError(
            "Locator names the archive root. Provide a resource path inside the archive."
        )
    if not normalized:
        return root
    return root.joinpath(*normalized.split(ZIP_PATH_SEPARATOR))


def locator_of(root: Path, path: Path) -> str:
    """Return the POSIX locator of ``path`` relative to ``root``."""
    return path.relative_to(root).as_posix()
