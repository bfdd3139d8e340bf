"""Text codecs for values JSON cannot express natively.

Timestamps travel as ISO-8601 instants and binary blobs as base64 text.
Both parsers are strict: any deviation from the written form fails.
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone
import re

_INSTANT_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?Z"
)
_BASE64_ALPHABET = re.compile(r"[A-Za-z0-9+/]*={0,2}")


def format_instant(value: datetime) -> str:
    """Format an aware datetime as an ISO-8601 UTC instant.

    The fraction is omitted when zero, printed as milliseconds when it
    is a whole number of milliseconds, and as microseconds otherwise.

    Args:
        value: Timezone-aware datetime.

    Returns:
        Instant text such as ``2015-07-23T14:34:05.980Z``.

    Raises:
        ValueError: If the datetime is naive and so names no instant.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(
            f"Naive datetime {value.isoformat()} has no time zone and is not an instant"
        )
    instant = value.astimezone(timezone.utc)
    text = (
        f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"
        f"T{instant.hour:02d}:{instant.minute:02d}:{instant.second:02d}"
    )
    micros = instant.microsecond
    if micros == 0:
        return f"{text}Z"
    if micros % 1000 == 0:
        return f"{text}.{micros // 1000:03d}Z"
    return f"{text}.{micros:06d}Z"


def parse_instant(text: str) -> datetime:
    """Parse ISO-8601 UTC instant text.

    Args:
        text: Instant text ending in ``Z``.

    Returns:
        Aware UTC datetime; digits beyond microseconds are truncated.

    Raises:
        ValueError: If the text does not match the instant form or names
            an impossible date or time.
    """
    if not isinstance(text, str):
        raise ValueError(f"Expected instant text, got {type(text).__name__}")
    match = _INSTANT_PATTERN.fullmatch(text)
    if match is None:
        raise ValueError(f"Text '{text}' is not an ISO-8601 instant")
    year, month, day, hour, minute, second, fraction = match.groups()
    micros = int((fraction or "0").ljust(6, "0")[:6])
    return datetime(
        int(year),
        int(month),
        int(day),
        int(hour),
        int(minute),
        int(second),
        micros,
        tzinfo=timezone.utc,
    )


def encode_binary(value: bytes | bytearray | memoryview) -> str:
    """Encode bytes as standard padded base64 without line breaks."""
    return base64.b64encode(bytes(value)).decode("ascii")


def decode_binary(text: str) -> bytes:
    """Decode standard base64 text.

    Padding may be omitted entirely, but padding that is present must
    complete a four-character group. Characters outside the standard
    alphabet fail.

    Args:
        text: Base64 text.

    Returns:
        Decoded bytes.

    Raises:
        ValueError: If the text is not valid base64.
    """
    if not isinstance(text, str):
        raise ValueError(f"Expected base64 text, got {type(text).__name__}")
    if _BASE64_ALPHABET.fullmatch(text) is None:
        raise ValueError(f"Text '{text}' contains characters outside the base64 alphabet")
    if "=" in text:
        if len(text) % 4 != 0:
            raise ValueError(f"Text '{text}' has incorrect base64 padding")
        padded = text
    elif len(text) % 4 == 1:
        raise ValueError(f"Text '{text}' has an invalid base64 length")
    else:
        padded = text + "=" * (-len(text) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except binascii.Error as error:
        raise ValueError(f"Text '{text}' is not valid base64: {error}") from error
