"""Locator-addressed resource manager over an archive working directory.

This module owns the archive lifecycle (open, save, close), the
concurrency guard, and the typed accessors for properties, numbers,
images, XML documents, and JSON data maps. Backings only decide how
the working directory is first populated.
"""

from __future__ import annotations

from contextlib import suppress
import os
from pathlib import Path
import tempfile
import threading
from types import TracebackType
from typing import Callable, Mapping
from xml.etree import ElementTree

from PIL import Image

from archive.zip_codec import ArchiveEventSink, pack_directory
from convert.json_converter import parse_data_map, render_data_map
from core.config import SatchelConfig
from core.constants import IMAGE_FORMATS_BY_SUFFIX, JSON_FILE_ENCODING, WORKING_DIR_PREFIX
from core.errors import SatchelConversionError, SatchelStateError, SatchelStoreError
from core.locators import Locator, locator_of, normalize_locator, resolve_locator
from core.logging_config import configure_logging, get_logger
from core.values import DataMap
from resources.backing import ArchiveBacking, EmptyArchiveBacking, ZipArchiveBacking
from resources.image_io import decode_image, encode_image, image_format_for
from resources.number_text import format_number, parse_number
from resources.properties_io import dump_properties, load_properties
from resources.xml_io import as_document, parse_xml, serialize_xml

_LOGGER = get_logger(__name__)

ImageFactory = Callable[[], "Image.Image | None"]
XmlFactory = Callable[[], "ElementTree.ElementTree | ElementTree.Element | None"]


class ArchiveResourceManager:
    """Typed key/value store over a private unpacked archive directory.

    Every accessor holds one reentrant lock for its whole duration, so
    get-or-create sequences are atomic across threads and accessors may
    call each other (or be called from create callbacks). Once closed,
    every operation except ``close`` raises ``SatchelStateError``.
    """

    def __init__(
        self,
        working_dir: Path,
        backing: ArchiveBacking,
        config: SatchelConfig | None = None,
        event_sink: ArchiveEventSink | None = None,
    ) -> None:
        """Wrap an existing working directory.

        Prefer ``open`` or ``new``, which create and populate the directory.

        Args:
            working_dir: Directory owned exclusively by this manager.
            backing: Origin of the directory contents.
            config: Optional runtime configuration.
            event_sink: Optional structured event sink.
        """
        self._working_dir = working_dir
        self._backing = backing
        self._config = config or SatchelConfig.from_env()
        self._events: ArchiveEventSink = event_sink if event_sink is not None else _LOGGER
        self._lock = threading.RLock()
        self._closed = False

    @classmethod
    def open(
        cls,
        archive_path: Path | str,
        config: SatchelConfig | None = None,
        event_sink: ArchiveEventSink | None = None,
    ) -> "ArchiveResourceManager":
        """Unpack an existing zip archive into a new working directory.

        Args:
            archive_path: Archive file (any extension) to open.
            config: Optional runtime configuration.
            event_sink: Optional structured event sink.

        Returns:
            Open resource manager whose default save target is the archive.

        Raises:
            FileNotFoundError: If the archive does not exist.
            zipfile.BadZipFile: If the file is not a zip archive.
            SatchelLocatorError: If an archive entry escapes the directory.
        """
        backing = ZipArchiveBacking(Path(archive_path).expanduser().resolve())
        return cls._create(backing, config, event_sink)

    @classmethod
    def new(
        cls,
        config: SatchelConfig | None = None,
        event_sink: ArchiveEventSink | None = None,
    ) -> "ArchiveResourceManager":
        """Create an empty archive that can only be saved to an explicit path."""
        return cls._create(EmptyArchiveBacking(), config, event_sink)

    @classmethod
    def _create(
        cls,
        backing: ArchiveBacking,
        config: SatchelConfig | None,
        event_sink: ArchiveEventSink | None,
    ) -> "ArchiveResourceManager":
        """Create and populate a working directory under the configured root.

        Args:
            backing: Origin of the directory contents.
            config: Optional runtime configuration.
            event_sink: Optional structured event sink.

        Returns:
            Open resource manager.
        """
        resolved_config = config or SatchelConfig.from_env()
        configure_logging(resolved_config.log_level)
        if resolved_config.work_root is not None:
            resolved_config.work_root.mkdir(parents=True, exist_ok=True)
        working_dir = Path(
            tempfile.mkdtemp(
                prefix=f"{WORKING_DIR_PREFIX}{backing.label}-",
                dir=resolved_config.work_root,
            )
        )
        manager = cls(working_dir, backing, resolved_config, event_sink)
        try:
            backing.populate(working_dir, manager._events)
        except Exception:
            manager._delete_working_dir()
            raise
        opened = backing.default_destination() is not None
        manager._events.info(
            "archive_opened" if opened else "archive_created",
            source=backing.label,
            working_dir=str(working_dir),
        )
        return manager

    @property
    def working_dir(self) -> Path:
        """Private directory holding the unpacked resources."""
        return self._working_dir

    @property
    def closed(self) -> bool:
        """Whether ``close`` has been called."""
        return self._closed

    def __enter__(self) -> "ArchiveResourceManager":
        """Return the manager itself; it is closed on exit."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Close the manager, discarding unsaved changes."""
        self.close()

    def exists(self, locator: Locator) -> bool:
        """Return whether a resource or directory exists at the locator."""
        with self._lock:
            self._ensure_open()
            return self._resolve(locator, allow_root=True).exists()

    def delete(self, locator: Locator) -> bool:
        """Delete a resource, or a directory and everything below it.

        Returns:
            Whether anything existed at the locator.
        """
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            if path.is_dir() and not path.is_symlink():
                _remove_tree(path)
            elif path.exists() or path.is_symlink():
                path.unlink()
            else:
                return False
            self._events.info("resource_deleted", locator=normalize_locator(locator))
            return True

    def list_sub_resources(
        self,
        prefix: Locator = "",
        include_directories: bool = False,
        recursive: bool = False,
    ) -> list[str]:
        """List locators that start with a prefix.

        A prefix naming a directory (or ending in ``/``) lists that
        directory; any other prefix lists its parent directory and keeps
        entries whose locator starts with the prefix text.

        Args:
            prefix: Locator prefix; the empty prefix lists the root.
            include_directories: Whether directory locators are returned.
            recursive: Whether to descend into subdirectories.

        Returns:
            Sorted POSIX locators.
        """
        with self._lock:
            self._ensure_open()
            raw_prefix = str(prefix).replace("\\", "/")
            normalized = normalize_locator(prefix)
            prefix_path = self._resolve(normalized, allow_root=True)
            if not normalized or raw_prefix.endswith("/") or prefix_path.is_dir():
                scan_dir = prefix_path
                match_prefix = f"{normalized}/" if normalized else ""
            else:
                scan_dir = prefix_path.parent
                match_prefix = normalized
            if not scan_dir.is_dir():
                return []
            candidates = scan_dir.rglob("*") if recursive else scan_dir.iterdir()
            locators = [
                locator_of(self._working_dir, path)
                for path in candidates
                if include_directories or not path.is_dir()
            ]
            return sorted(item for item in locators if item.startswith(match_prefix))

    def read_bytes(self, locator: Locator) -> bytes | None:
        """Return the raw resource bytes, or None if the resource is absent."""
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            if not path.is_file():
                return None
            return path.read_bytes()

    def write_bytes(self, locator: Locator, payload: bytes) -> None:
        """Replace a resource with raw bytes, creating parent directories."""
        with self._lock:
            self._ensure_open()
            _write_file(self._resolve(locator), payload)

    def get_properties(
        self,
        locator: Locator,
        defaults: Mapping[str, str] | None = None,
    ) -> dict[str, str] | None:
        """Load a properties resource, filling in defaults.

        Missing default keys are added to an existing resource and the
        resource is rewritten. An absent resource is created from the
        defaults. All of this happens under one lock acquisition.

        Args:
            locator: Properties resource locator.
            defaults: Optional default key/value pairs.

        Returns:
            Loaded properties, or None if absent and no defaults were given.
        """
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            if path.is_file():
                properties = load_properties(path)
                missing = {
                    key: value for key, value in (defaults or {}).items() if key not in properties
                }
                if missing:
                    properties.update(missing)
                    dump_properties(path, properties)
                    self._events.info(
                        "properties_defaults_merged",
                        locator=normalize_locator(locator),
                        added_keys=sorted(missing),
                    )
                return properties
            if defaults is None:
                return None
            created = dict(defaults)
            dump_properties(path, created)
            self._events.info("properties_created", locator=normalize_locator(locator))
            return dict(created)

    def get_property(
        self,
        locator: Locator,
        name: str,
        default: str | None = None,
    ) -> str | None:
        """Return one property, storing ``default`` when it is absent.

        Returns:
            Stored value, the default, or None if absent without a default.
        """
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            properties = load_properties(path) if path.is_file() else {}
            if name in properties:
                return properties[name]
            if default is None:
                return None
            properties[name] = default
            dump_properties(path, properties)
            return default

    def set_property(self, locator: Locator, name: str, value: str) -> None:
        """Store one property, creating the resource if needed."""
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            properties = load_properties(path) if path.is_file() else {}
            properties[name] = value
            dump_properties(path, properties)

    def has_property(self, locator: Locator, name: str) -> bool:
        """Return whether a properties resource defines ``name``."""
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            return path.is_file() and name in load_properties(path)

    def get_number(
        self,
        locator: Locator,
        name: str,
        default: int | float | None = None,
    ) -> int | float | None:
        """Like ``get_property`` but parses the stored text as a number.

        Raises:
            SatchelConversionError: If the stored text is not a number.
        """
        with self._lock:
            default_text = format_number(default) if default is not None else None
            text = self.get_property(locator, name, default_text)
            if text is None:
                return None
            try:
                return parse_number(text)
            except ValueError as error:
                raise SatchelConversionError(
                    f"Property '{name}' in '{normalize_locator(locator)}' is not a number: {text}",
                    key=name,
                    raw_text=text,
                ) from error

    def set_number(self, locator: Locator, name: str, value: int | float) -> None:
        """Store a number as property text, creating the resource if needed."""
        with self._lock:
            self.set_property(locator, name, format_number(value))

    def has_number(self, locator: Locator, name: str) -> bool:
        """Return whether a number property is present, without parsing it."""
        with self._lock:
            return self.has_property(locator, name)

    def get_image(
        self,
        locator: Locator,
        create: ImageFactory | None = None,
    ) -> Image.Image | None:
        """Decode a stored image, creating it on a miss.

        The image format follows the locator suffix (``png`` when the
        suffix is missing or unknown, unless configured otherwise).

        Args:
            locator: Image resource locator.
            create: Optional factory called once when the image is absent;
                a None result leaves the store untouched.

        Returns:
            Stored or created image, or None.
        """
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            if path.is_file():
                return decode_image(path.read_bytes())
            if create is None:
                return None
            image = create()
            if image is None:
                return None
            self._store_image(locator, path, image, None)
            self._events.info("image_created", locator=normalize_locator(locator))
            return image

    def set_image(
        self,
        locator: Locator,
        image: Image.Image,
        image_format: str | None = None,
    ) -> None:
        """Store an image, in ``image_format`` or the locator-implied format."""
        with self._lock:
            self._ensure_open()
            self._store_image(locator, self._resolve(locator), image, image_format)

    def get_xml_document(
        self,
        locator: Locator,
        create: XmlFactory | None = None,
    ) -> ElementTree.ElementTree | None:
        """Parse a stored XML document, creating it on a miss.

        Args:
            locator: XML resource locator.
            create: Optional factory returning an element or document tree;
                a None result leaves the store untouched.

        Returns:
            Stored or created document, or None.
        """
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            if path.is_file():
                return parse_xml(path.read_bytes())
            if create is None:
                return None
            node = create()
            if node is None:
                return None
            document = as_document(node)
            _write_file(path, serialize_xml(document))
            self._events.info("xml_document_created", locator=normalize_locator(locator))
            return document

    def set_xml_document(
        self,
        locator: Locator,
        document: ElementTree.ElementTree | ElementTree.Element,
    ) -> None:
        """Store an XML document or root element, replacing any previous one."""
        with self._lock:
            self._ensure_open()
            _write_file(self._resolve(locator), serialize_xml(document))

    def read_data_map(self, locator: Locator) -> DataMap:
        """Load a JSON resource as a data map.

        Raises:
            FileNotFoundError: If the resource does not exist.
            SatchelConversionError: If the JSON cannot be converted.
        """
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            return parse_data_map(path.read_text(encoding=JSON_FILE_ENCODING))

    def write_data_map(self, locator: Locator, mapping: Mapping[str, object]) -> None:
        """Store a data map as a JSON resource.

        The map is fully converted before the resource is touched, so a
        conversion failure leaves any previous content in place.

        Raises:
            SatchelConversionError: If a value cannot be converted.
        """
        with self._lock:
            self._ensure_open()
            path = self._resolve(locator)
            text = render_data_map(mapping, self._config.json_indent)
            _write_file(path, text.encode(JSON_FILE_ENCODING))

    def save(self, destination: Path | str | None = None) -> Path:
        """Pack the working directory into an archive file.

        The archive is written next to the destination and moved into
        place, so saving over the opened archive is safe. The manager
        stays open.

        Args:
            destination: Target archive; the opened archive when omitted.

        Returns:
            Path of the written archive.

        Raises:
            SatchelStoreError: If no destination is given and the backing
                has no default one.
        """
        with self._lock:
            self._ensure_open()
            target = (
                Path(destination).expanduser().resolve()
                if destination is not None
                else self._backing.default_destination()
            )
            if target is None:
                raise SatchelStoreError(
                    "This archive was created empty and has no source file. "
                    "Pass a destination path to save()."
                )
            target.parent.mkdir(parents=True, exist_ok=True)
            handle, temp_name = tempfile.mkstemp(
                prefix=f".{target.name}.",
                suffix=".tmp",
                dir=target.parent,
            )
            os.close(handle)
            temp_path = Path(temp_name)
            try:
                pack_directory(self._working_dir, temp_path, self._events)
                os.replace(temp_path, target)
            finally:
                temp_path.unlink(missing_ok=True)
            self._events.info("archive_saved", destination=str(target))
            return target

    def close(self) -> None:
        """Close the archive and delete its working directory.

        Unsaved changes are discarded. Calling ``close`` again is a no-op.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._delete_working_dir()
            self._events.info("archive_closed", working_dir=str(self._working_dir))

    def _ensure_open(self) -> None:
        """Raise ``SatchelStateError`` once the manager is closed."""
        if self._closed:
            raise SatchelStateError(
                "Archive is already closed. Cannot perform any more operations on it."
            )

    def _resolve(self, locator: Locator, allow_root: bool = False) -> Path:
        """Resolve a locator inside the working directory."""
        return resolve_locator(self._working_dir, locator, allow_root=allow_root)

    def _store_image(
        self,
        locator: Locator,
        path: Path,
        image: Image.Image,
        image_format: str | None,
    ) -> None:
        """Encode an image and write it to its resource path.

        Args:
            locator: Image resource locator.
            path: Resolved resource path.
            image: Image to encode.
            image_format: Explicit format or suffix; the locator suffix
                decides when None.
        """
        if image_format:
            suffix = image_format.lower().lstrip(".")
            format_name = IMAGE_FORMATS_BY_SUFFIX.get(suffix, image_format.upper())
        else:
            format_name = image_format_for(
                normalize_locator(locator), self._config.default_image_format
            )
        _write_file(path, encode_image(image, format_name))

    def _delete_working_dir(self) -> None:
        """Remove the working directory if it still exists."""
        if self._working_dir.exists():
            _remove_tree(self._working_dir)


def _write_file(path: Path, payload: bytes) -> None:
    """Write bytes to a resource path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)


def _remove_tree(root: Path) -> None:
    """Delete a directory tree, ignoring entries that are already gone."""
    for path in sorted(root.rglob("*"), reverse=True):
        if path.is_dir() and not path.is_symlink():
            with suppress(FileNotFoundError):
                path.rmdir()
        else:
            path.unlink(missing_ok=True)
    with suppress(FileNotFoundError):
        root.rmdir()
