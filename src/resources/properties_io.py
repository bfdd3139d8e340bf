"""Properties file persistence.

Properties resources use the Java ``.properties`` convention: Latin-1
text, ``key=value`` lines, ``\\uXXXX`` escapes, and ``#`` comments.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import javaproperties

from core.constants import PROPERTIES_FILE_ENCODING


def load_properties(path: Path) -> dict[str, str]:
    """Read a properties file into a flat text mapping.

    Args:
        path: Existing properties file.

    Returns:
        Loaded key/value pairs.
    """
    text = path.read_text(encoding=PROPERTIES_FILE_ENCODING)
    return dict(javaproperties.loads(text))


def dump_properties(
    path: Path,
    properties: Mapping[str, str],
    comment: str | None = None,
) -> None:
    """Write a flat text mapping as a properties file.

    A timestamp comment line is always written; ``comment`` is added
    above it when given. Parent directories are created as needed.

    Args:
        path: Destination properties file.
        properties: Key/value pairs to store.
        comment: Optional leading comment.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    text = javaproperties.dumps(
        dict(properties),
        comments=comment,
        timestamp=True,
        sort_keys=True,
    )
    path.write_text(text, encoding=PROPERTIES_FILE_ENCODING)
