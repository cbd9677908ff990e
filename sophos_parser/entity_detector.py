"""Entity detection for Sophos configuration elements.

One predicate decides what an "entity" is. The extractor, the reference
index and the differ all go through it so that they cannot disagree.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass

from sophos_parser.config_reader import ParsedDocument
from sophos_parser.domain.constants import (
    CONTAINER_TAGS, EXCLUDED_TAGS, KNOWN_TAGS, NAME_TAG, TRANSACTION_ID_ATTR,
)
from sophos_parser.domain.value_parser import element_text, local_tag


@dataclass
class EntityDetectionResult:
    """Facts about one element and whether its tag qualifies as an entity type."""

    tag: str
    name: str
    has_transaction_id: bool
    is_root_level: bool
    is_candidate: bool


class EntityDetector:
    """Classifies elements of a ParsedDocument as entities or structure."""

    def __init__(self, document: ParsedDocument, known_tags: frozenset[str] | None = None):
        self.document = document
        self.known_tags = known_tags or KNOWN_TAGS

    # ── Element Facts ───────────────────────────────────────────────────

    @staticmethod
    def named_text(element: ET.Element) -> str:
        """Trimmed text of the direct Name child, '' when missing."""
        for child in element:
            if local_tag(child) == NAME_TAG:
                return element_text(child)
        return ''

    @staticmethod
    def has_transaction_id(element: ET.Element) -> bool:
        return TRANSACTION_ID_ATTR in element.attrib

    @staticmethod
    def is_container(element: ET.Element) -> bool:
        return local_tag(element) in CONTAINER_TAGS

    def is_root_level(self, element: ET.Element) -> bool:
        return self.document.is_root_level(element)

    def wraps_known_entities(self, element: ET.Element) -> bool:
        return any(local_tag(child) in self.known_tags for child in element)

    # ── Predicates ──────────────────────────────────────────────────────

    def is_named_entity(self, element: ET.Element) -> bool:
        """Named entity as seen by reference lookups: a non-container with a Name."""
        return not self.is_container(element) and bool(self.named_text(element))

    def is_entity_candidate(self, element: ET.Element) -> bool:
        """Whether an element's tag should be collected as an entity type."""
        return self.detect(element).is_candidate

    def is_entity_instance(self, element: ET.Element, require_root_transaction: bool = True) -> bool:
        """Whether one element of a collected tag becomes an entity.

        Rejects containers of the same tag, items nested in such a
        container, elements with neither transaction id nor name, and
        empty wrappers. Root-level elements also need a transaction id
        unless `require_root_transaction` is False.
        """
        tag = local_tag(element)
        if tag in EXCLUDED_TAGS:
            return False
        if any(local_tag(child) == tag for child in element):
            return False
        parent = self.document.parent_of(element)
        if parent is not None and local_tag(parent) == tag:
            return False
        has_tx = self.has_transaction_id(element)
        if require_root_transaction and not has_tx and self.is_root_level(element):
            return False
        if not has_tx and not self.named_text(element):
            return False
        return len(element) > 0 or bool(''.join(element.itertext()).strip())

    def detect(self, element: ET.Element) -> EntityDetectionResult:
        tag = local_tag(element)
        name = self.named_text(element)
        has_tx = self.has_transaction_id(element)
        root_level = self.is_root_level(element)

        is_candidate = (
            tag not in CONTAINER_TAGS
            and (bool(name) or has_tx)
            and not (root_level and not has_tx)
            and not self.wraps_known_entities(element)
        )
        return EntityDetectionResult(tag, name, has_tx, root_level, is_candidate)
