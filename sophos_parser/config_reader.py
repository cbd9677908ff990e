"""Reader for Sophos firewall configuration exports."""

import copy
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator

from sophos_parser.domain.constants import ROOT_PARENT_TAGS
from sophos_parser.domain.value_parser import local_tag

logger = logging.getLogger(__name__)


class ConfigurationParseError(Exception):
    """Error reading a configuration export."""
    pass


@dataclass(frozen=True)
class ParsedDocument:
    """A parsed export with the parent links ElementTree does not keep."""
    root: ET.Element
    configuration: ET.Element
    parents: dict[ET.Element, ET.Element] = field(repr=False)

    def parent_of(self, element: ET.Element) -> ET.Element | None:
        return self.parents.get(element)

    def iter_elements(self) -> Iterator[ET.Element]:
        """All elements in document order, starting at the XML root."""
        return self.root.iter()

    def find_all(self, tag: str) -> list[ET.Element]:
        """All elements with the given tag, in document order."""
        return [el for el in self.root.iter() if local_tag(el) == tag]

    def is_root_level(self, element: ET.Element) -> bool:
        """Whether the element sits directly under Configuration/Entities (or is the root)."""
        parent = self.parents.get(element)
        return parent is None or local_tag(parent) in ROOT_PARENT_TAGS

    def ancestors(self, element: ET.Element) -> Iterator[ET.Element]:
        """Parent, grandparent, ... up to the XML root."""
        node = self.parents.get(element)
        while node is not None:
            yield node
            node = self.parents.get(node)


def parse_document(xml_text: str | bytes) -> ParsedDocument:
    """Parse export text into a ParsedDocument.

    Raises:
        ConfigurationParseError: the text is not well-formed XML, or holds
            no Configuration element.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ConfigurationParseError(f"Invalid XML format: {e}") from e

    configuration = None
    for el in root.iter():
        if local_tag(el) == 'Configuration':
            configuration = el
            break
    if configuration is None:
        raise ConfigurationParseError("No Configuration element found in XML")

    parents = {child: parent for parent in root.iter() for child in parent}
    logger.debug("Parsed document with %d elements", len(parents) + 1)
    return ParsedDocument(root=root, configuration=configuration, parents=parents)


def read_document(path: str) -> ParsedDocument:
    """Read and parse an export file from disk."""
    with open(path, 'rb') as f:
        return parse_document(f.read())


def serialize_element(element: ET.Element) -> str:
    """Serialize an element subtree without its trailing tail text."""
    detached = copy.copy(element)
    detached.tail = None
    return ET.tostring(detached, encoding='unicode')
