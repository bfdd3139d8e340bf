"""XML resource codec backed by ElementTree."""

from __future__ import annotations

import io
from xml.etree import ElementTree

from core.constants import XML_FILE_ENCODING


def parse_xml(payload: bytes) -> ElementTree.ElementTree:
    """Parse XML bytes into a document tree.

    Raises:
        xml.etree.ElementTree.ParseError: If the payload is not well formed.
    """
    return ElementTree.ElementTree(ElementTree.fromstring(payload))


def as_document(node: ElementTree.ElementTree | ElementTree.Element) -> ElementTree.ElementTree:
    """Wrap a root element in a document tree when needed."""
    if isinstance(node, ElementTree.ElementTree):
        return node
    return ElementTree.ElementTree(node)


def serialize_xml(document: ElementTree.ElementTree | ElementTree.Element) -> bytes:
    """Serialize a document tree with an XML declaration."""
    buffer = io.BytesIO()
    as_document(document).write(buffer, encoding=XML_FILE_ENCODING, xml_declaration=True)
    return buffer.getvalue()
