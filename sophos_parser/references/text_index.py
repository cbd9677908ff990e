"""Index of element text content for name lookups."""

import xml.etree.ElementTree as ET

from sophos_parser.config_reader import ParsedDocument


def build_text_index(document: ParsedDocument) -> dict[str, list[ET.Element]]:
    """Map trimmed text → elements that directly contain it, in document order.

    Both an element's leading text and the tail text after each of its
    children count as its own text, so mixed content is indexed too.
    """
    index: dict[str, list[ET.Element]] = {}
    for element in document.iter_elements():
        text = (element.text or '').strip()
        if text:
            index.setdefault(text, []).append(element)
        for child in element:
            tail = (child.tail or '').strip()
            if tail:
                index.setdefault(tail, []).append(element)
    return index
