"""
Parser for generic configuration entities.

Every entity that has no dedicated parser (hosts, services, zones,
interfaces, VPN connections, ...) goes through EntityParser: all direct
children become fields and the display name is resolved from the usual
naming children.
"""

import xml.etree.ElementTree as ET

from sophos_parser.domain.constants import NAME_FALLBACK_TAGS, NAME_TAG
from sophos_parser.domain.models import Entity
from sophos_parser.domain.tag_formatter import format_tag_name
from sophos_parser.domain.value_parser import NestedValueParser, local_tag
from sophos_parser.parsers.base_parser import BaseParser


class EntityParser(BaseParser):
    """Parser for any element treated as a generic entity."""

    def parse(self, element: ET.Element, index: int, tag: str | None = None) -> Entity:
        """
        Parse an element into an Entity.

        Args:
            element: The entity element
            index: Position among collected entities of the same kind
            tag: Canonical tag to record (defaults to the element's own tag,
                e.g. 'Service' for a `<Services>` element)

        Returns:
            Entity with fields from all direct children and a non-empty name
        """
        tag = tag or local_tag(element)
        fields = NestedValueParser.parse_object(element)

        return Entity(
            tag=tag,
            name=self._resolve_name(element, fields, tag),
            transaction_id=self._get_transaction_id(element),
            fields=fields,
            raw_xml=self._serialize(element),
            index=index,
            attributes=self._get_attributes(element),
        )

    def _resolve_name(self, element: ET.Element, fields: dict, tag: str) -> str:
        for child_tag in (NAME_TAG, *NAME_FALLBACK_TAGS):
            name = self._get_text(element, child_tag)
            if name:
                return name
        name = fields.get(NAME_TAG)
        if isinstance(name, str) and name.strip():
            return name.strip()
        return format_tag_name(tag) or tag
