"""Base class for configuration element parsers."""

import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Any

from sophos_parser.config_reader import serialize_element
from sophos_parser.domain.constants import TRANSACTION_ID_ATTR
from sophos_parser.domain.value_parser import element_text


class BaseParser(ABC):
    """
    Abstract base for parsers of one configuration element type.

    Subclasses implement parse() for a single element; the shared helpers
    read direct children only, never descendants, so that nested entities
    cannot leak values into their parent.
    """

    @abstractmethod
    def parse(self, element: ET.Element, index: int) -> Any:
        """
        Parse one element.

        Args:
            element: The element to parse
            index: Position of the element among its kind in the document

        Returns:
            A parsed record for the element
        """

    def _get_text(self, element: ET.Element, path: str) -> str:
        """Trimmed text at an ElementTree child path ('Name', 'After/Name'), '' if missing."""
        return element_text(element.find(path))

    def _get_texts(self, element: ET.Element, path: str) -> list[str]:
        """Non-empty trimmed texts of every match of a child path."""
        return [text for text in (element_text(el) for el in element.findall(path)) if text]

    def _get_transaction_id(self, element: ET.Element) -> str:
        return element.get(TRANSACTION_ID_ATTR, '')

    def _get_attributes(self, element: ET.Element) -> dict[str, str]:
        """Element attributes other than the transaction id."""
        return {k: v for k, v in element.attrib.items() if k != TRANSACTION_ID_ATTR}

    def _serialize(self, element: ET.Element) -> str:
        return serialize_element(element)
