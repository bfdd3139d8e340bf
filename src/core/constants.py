"""Core constants used across Satchel modules.

This module centralizes wire-format markers and default settings.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

TIME_SUFFIX = "@ISOtime"
BINARY_SUFFIX = "@base64"
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
DEFAULT_IMAGE_FORMAT = "png"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_CLI_INDENT_UNIT = "  "
WORKING_DIR_PREFIX = "satchel-"
PROPERTIES_FILE_ENCODING = "iso-8859-1"
JSON_FILE_ENCODING = "utf-8"
XML_FILE_ENCODING = "utf-8"
ZIP_PATH_SEPARATOR = "/"
IMAGE_FORMATS_BY_SUFFIX = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "gif": "GIF",
    "bmp": "BMP",
    "tif": "TIFF",
    "tiff": "TIFF",
    "webp": "WEBP",
}
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
