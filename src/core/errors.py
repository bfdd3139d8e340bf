"""Satchel exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Filesystem and codec failures are not wrapped: they propagate as the
``OSError`` (or codec error) raised by the underlying library.
"""

from __future__ import annotations


class SatchelError(Exception):
    """Base exception for all Satchel failures."""


class SatchelConfigError(SatchelError):
    """Raised for invalid runtime configuration."""


class SatchelConversionError(SatchelError):
    """Raised when a value or a JSON node cannot be converted.

    Attributes:
        key: Offending mapping key with any type suffix removed.
        raw_key: Offending key exactly as it appeared in the input.
        path: Keys and list indexes leading to the offending entry.
        raw_text: Raw JSON-side text that failed to parse, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        raw_key: str | None = None,
        path: tuple[str, ...] = (),
        raw_text: str | None = None,
    ) -> None:
        super().__init__(message)
        self.key = key
        self.raw_key = raw_key if raw_key is not None else key
        self.path = path
        self.raw_text = raw_text


class SatchelStateError(SatchelError):
    """Raised when an archive is used after it has been closed."""


class SatchelLocatorError(SatchelError):
    """Raised for locators that escape or misuse the store root."""


class SatchelStoreError(SatchelError):
    """Raised for invalid archive store usage."""
