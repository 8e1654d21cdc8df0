"""XML helpers shared by all document parsers.

ETS documents are namespaced and the namespace version changes between ETS
releases, so elements are always matched by local name. ElementTree has no
parent pointers; ``XmlDocument`` builds a child-to-parent index once so that
ancestor lookups (Area, Line, Channel, Module, ...) are plain dict walks.
"""
import logging
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, Iterator, Optional

from topobus.errors import (
    InvalidAttributeValueError,
    MissingAncestorError,
    MissingRequiredAttributeError,
)

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def local_name(tag) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def strip_bom(text: str) -> str:
    return text.lstrip(BOM)


def decode_xml_bytes(data: bytes) -> str:
    """Decode document bytes to text, dropping any byte order mark."""
    if data.startswith(b"\xff\xfe") or data.startswith(b"\xfe\xff"):
        return strip_bom(data.decode("utf-16"))
    return strip_bom(data.decode("utf-8-sig", errors="replace"))


def attr_value(element: Optional[ET.Element], name: str) -> Optional[str]:
    """Return a trimmed attribute value, or None if absent or blank."""
    if element is None:
        return None
    value = element.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def describe(element: ET.Element) -> str:
    """Short context string for diagnostics."""
    element_id = element.get("Id")
    if element_id:
        return f"Id={element_id}"
    address = element.get("Address")
    if address:
        return f"Address={address}"
    return "no id"


def required_attribute(element: ET.Element, name: str) -> str:
    """
    Read a mandatory attribute.

    Raises:
        MissingRequiredAttributeError: If the attribute is absent or blank
    """
    value = attr_value(element, name)
    if value is None:
        raise MissingRequiredAttributeError(local_name(element.tag), name, describe(element))
    return value


def required_int_attribute(element: ET.Element, name: str, minimum: int, maximum: int) -> int:
    """
    Read a mandatory integer attribute within ``minimum..maximum``.

    Raises:
        MissingRequiredAttributeError: If the attribute is absent or blank
        InvalidAttributeValueError: If it is not an integer in range
    """
    raw = required_attribute(element, name)
    expected = f"integer {minimum}..{maximum}"
    try:
        value = int(raw)
    except ValueError:
        raise InvalidAttributeValueError(local_name(element.tag), name, raw, expected, describe(element)) from None
    if not minimum <= value <= maximum:
        raise InvalidAttributeValueError(local_name(element.tag), name, raw, expected, describe(element))
    return value


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_xml(text: str) -> "XmlDocument":
    """Parse document text into an ``XmlDocument``.

    Raises:
        xml.etree.ElementTree.ParseError: If the text is not well formed
    """
    return XmlDocument(ET.fromstring(strip_bom(text)))


class XmlDocument:
    """Parsed XML document with a parent index."""

    def __init__(self, root: ET.Element):
        self.root = root
        self._parents: Dict[ET.Element, ET.Element] = {
            child: parent for parent in root.iter() for child in parent
        }

    def iter_elements(self, name: str) -> Iterator[ET.Element]:
        """Yield all descendants (document order) with the given local name."""
        for element in self.root.iter():
            if local_name(element.tag) == name:
                yield element

    def first(self, name: str) -> Optional[ET.Element]:
        return next(self.iter_elements(name), None)

    def has_element(self, *names: str) -> bool:
        wanted = set(names)
        return any(local_name(element.tag) in wanted for element in self.root.iter())

    def parent(self, element: ET.Element) -> Optional[ET.Element]:
        return self._parents.get(element)

    def ancestors(self, element: ET.Element) -> Iterator[ET.Element]:
        """Yield ancestors from the nearest to the root."""
        current = self._parents.get(element)
        while current is not None:
            yield current
            current = self._parents.get(current)

    def find_ancestor(self, element: ET.Element, *names: str) -> Optional[ET.Element]:
        """Return the nearest ancestor whose local name is in ``names``."""
        wanted = set(names)
        for ancestor in self.ancestors(element):
            if local_name(ancestor.tag) in wanted:
                return ancestor
        return None

    def find_ancestor_address(self, element: ET.Element, name: str) -> Optional[str]:
        return attr_value(self.find_ancestor(element, name), "Address")

    def required_ancestor_address(self, element: ET.Element, name: str) -> str:
        """
        Address attribute of the nearest ``name`` ancestor.

        Raises:
            MissingAncestorError: If there is no such ancestor or it has no Address
        """
        address = self.find_ancestor_address(element, name)
        if address is None:
            raise MissingAncestorError(local_name(element.tag), name, describe(element))
        return address


def iter_children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in element:
        if local_name(child.tag) == name:
            yield child


def find_child_element(element: ET.Element, name: str) -> Optional[ET.Element]:
    return next(iter_children(element, name), None)


def iter_descendants(element: ET.Element, names: Iterable[str]) -> Iterator[ET.Element]:
    wanted = set(names)
    for child in element.iter():
        if child is not element and local_name(child.tag) in wanted:
            yield child
