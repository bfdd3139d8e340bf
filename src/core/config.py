"""Runtime configuration model for Satchel.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_IMAGE_FORMAT,
    DEFAULT_LOG_LEVEL,
    IMAGE_FORMATS_BY_SUFFIX,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import SatchelConfigError


@dataclass(frozen=True)
class SatchelConfig:
    """Validated runtime configuration.

    Attributes:
        work_root: Parent directory for archive working directories;
            the system temp directory when None.
        json_indent: Indent unit for stored JSON documents; compact
            JSON is written when None.
        default_image_format: Image suffix used when a locator has no
            recognized image suffix.
        log_level: Minimum structured log level.
    """

    work_root: Path | None = None
    json_indent: str | None = None
    default_image_format: str = DEFAULT_IMAGE_FORMAT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "SatchelConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            SatchelConfigError: If environment values are invalid.
        """
        work_root_value = os.getenv("SATCHEL_WORK_ROOT")
        work_root = Path(work_root_value).expanduser().resolve() if work_root_value else None
        return cls(
            work_root=work_root,
            json_indent=parse_indent_unit(os.getenv("SATCHEL_JSON_INDENT")),
            default_image_format=_parse_image_format(
                os.getenv("SATCHEL_IMAGE_FORMAT", DEFAULT_IMAGE_FORMAT)
            ),
            log_level=_parse_log_level(os.getenv("SATCHEL_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )


def parse_indent_unit(raw_value: str | None) -> str | None:
    """Parse an indent setting into the literal indent unit.

    Args:
        raw_value: ``None``/empty for compact output, a count of spaces,
            ``tab``, or a literal whitespace unit.

    Returns:
        Indent unit text, or None for compact output.

    Raises:
        SatchelConfigError: If the value is not a count, ``tab``, or whitespace.
    """
    if raw_value is None or raw_value == "":
        return None
    if raw_value.lower() == "tab":
        return "\t"
    if raw_value.isdigit():
        return " " * int(raw_value)
    if raw_value.isspace():
        return raw_value
    raise SatchelConfigError(
        f"Invalid SATCHEL_JSON_INDENT value: expected a number of spaces or 'tab', "
        f"got '{raw_value}'. Unset it to store compact JSON."
    )


def _parse_image_format(raw_value: str) -> str:
    """Validate the default image format suffix.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Lower-case image suffix.

    Raises:
        SatchelConfigError: If the suffix has no known image format.
    """
    normalized = raw_value.strip().lower().lstrip(".")
    if normalized not in IMAGE_FORMATS_BY_SUFFIX:
        supported = ", ".join(sorted(IMAGE_FORMATS_BY_SUFFIX))
        raise SatchelConfigError(
            f"Invalid SATCHEL_IMAGE_FORMAT value '{raw_value}'. Use one of: {supported}."
        )
    return normalized


def _parse_log_level(raw_value: str) -> str:
    """Validate the log level name.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Upper-case level name.

    Raises:
        SatchelConfigError: If the level name is unknown.
    """
    normalized = raw_value.strip().upper()
    if normalized not in SUPPORTED_LOG_LEVELS:
        raise SatchelConfigError(
            f"Invalid SATCHEL_LOG_LEVEL value '{raw_value}'. "
            f"Use one of: {', '.join(SUPPORTED_LOG_LEVELS)}."
        )
    return normalized
