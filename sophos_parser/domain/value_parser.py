"""Conversion of arbitrary XML subtrees into plain nested values.

The shapes produced here are the only ones the rest of the package
understands:

  - leaf element                      → trimmed text
  - >1 children, all with one tag     → list (strings for leaf items)
  - anything else                     → dict of tag → value, where a tag
                                        recurring among mixed siblings is
                                        promoted to a list
"""

import xml.etree.ElementTree as ET
from typing import Any

from sophos_parser.domain.models import FieldValue


def local_tag(element: ET.Element) -> str:
    """Element tag with any `{namespace}` prefix removed."""
    tag = element.tag
    if not isinstance(tag, str):
        return ''
    if '}' in tag:
        tag = tag.split('}')[1]
    return tag


def element_text(element: ET.Element | None) -> str:
    """Trimmed text content of an element, '' when absent."""
    if element is None:
        return ''
    return (element.text or '').strip()


class NestedValueParser:
    """Turns XML elements into str / list / dict values."""

    @classmethod
    def parse(cls, element: ET.Element) -> FieldValue:
        children = list(element)
        if not children:
            return element_text(element)

        first_tag = local_tag(children[0])
        if len(children) > 1 and all(local_tag(child) == first_tag for child in children):
            return [
                element_text(child) if len(child) == 0 else cls.parse(child)
                for child in children
            ]

        return cls.parse_object(element)

    @classmethod
    def parse_object(cls, element: ET.Element) -> dict[str, Any]:
        """Map each direct child tag to its parsed value.

        Used for entity fields and firewall policy objects, where the
        result must be a dict even when all children share a tag.
        """
        result: dict[str, Any] = {}
        # A first value that is itself a list must be wrapped, not extended
        promoted: set[str] = set()
        for child in element:
            tag = local_tag(child)
            if not tag:
                continue
            value = cls.parse(child)
            if tag not in result:
                result[tag] = value
            elif tag in promoted:
                result[tag].append(value)
            else:
                result[tag] = [result[tag], value]
                promoted.add(tag)
        return result
