"""Image resource codec backed by Pillow."""

from __future__ import annotations

import io
from pathlib import PurePosixPath

from PIL import Image

from core.constants import IMAGE_FORMATS_BY_SUFFIX

_MODES_WITHOUT_ALPHA = ("1", "L", "RGB", "CMYK")


def image_format_for(locator: str, default_suffix: str) -> str:
    """Return the Pillow format name implied by a locator suffix.

    Args:
        locator: Normalized locator text.
        default_suffix: Suffix used when the locator has none or an
            unrecognized one.

    Returns:
        Pillow format name such as ``PNG``.
    """
    suffix = PurePosixPath(locator).suffix.lower().lstrip(".")
    if suffix in IMAGE_FORMATS_BY_SUFFIX:
        return IMAGE_FORMATS_BY_SUFFIX[suffix]
    return IMAGE_FORMATS_BY_SUFFIX[default_suffix]


def decode_image(payload: bytes) -> Image.Image:
    """Decode image bytes into a fully loaded Pillow image."""
    image = Image.open(io.BytesIO(payload))
    image.load()
    return image


def encode_image(image: Image.Image, image_format: str) -> bytes:
    """Encode a Pillow image in the given format.

    JPEG has no alpha channel, so images with transparency or a palette
    are converted to RGB first.
    """
    if image_format == "JPEG" and image.mode not in _MODES_WITHOUT_ALPHA:
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()
