"""Reverse cross-reference index: where is each named entity used?

For every distinct entity name the builder looks up the elements whose
own text equals that name, keeps those whose tag is on the reference
allow-list, and attributes each hit to the nearest named ancestor
entity. Names nobody references are dropped from the result.
"""

import asyncio
import logging
import time
import xml.etree.ElementTree as ET
from typing import Callable

from sophos_parser.config_reader import ParsedDocument
from sophos_parser.domain.constants import CONTAINER_TAGS, NAME_TAG, ROOT_PARENT_TAGS, TRANSACTION_ID_ATTR
from sophos_parser.domain.models import (
    Entity, EntityReferenceTree, ReferenceEntry, ReferenceIndexOptions,
)
from sophos_parser.domain.value_parser import local_tag
from sophos_parser.entity_detector import EntityDetector
from sophos_parser.references.cancellation import CancellationToken
from sophos_parser.references.text_index import build_text_index

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

# Progress milestones (percent)
PROGRESS_PARSED = 5
PROGRESS_ENTITIES = 15
PROGRESS_NAME_MAP = 20
PROGRESS_TEXT_INDEX = 35
PROGRESS_SCAN_SPAN = 60
PROGRESS_SCAN_CAP = 95
PROGRESS_DONE = 100


def _noop_progress(percent: int) -> None:
    pass


class _ReferenceScan:
    """Lookup state shared by the sync and async builds."""

    def __init__(self, document: ParsedDocument, options: ReferenceIndexOptions):
        self.document = document
        self.options = options
        self.detector = EntityDetector(document)
        self.definitions: dict[str, list[Entity]] = {}
        self.text_index: dict[str, list[ET.Element]] = {}

    # ── Definitions ─────────────────────────────────────────────────────

    def collect_definitions(self) -> None:
        """Named entities grouped by name, in discovery order."""
        for element in self.document.iter_elements():
            if not self.detector.is_named_entity(element):
                continue
            name = self.detector.named_text(element)
            self.definitions.setdefault(name, []).append(self._definition(element, name))

    def _definition(self, element: ET.Element, name: str) -> Entity:
        entity = Entity(
            tag=local_tag(element),
            name=name,
            transaction_id=element.get(TRANSACTION_ID_ATTR, ''),
        )
        parent = self.document.parent_of(element)
        if parent is not None and local_tag(parent) not in ROOT_PARENT_TAGS:
            parent_name = self.detector.named_text(parent)
            if parent_name:
                entity.parent_entity_name = parent_name
                entity.parent_entity_tag = local_tag(parent)
        return entity

    def build_text_index(self) -> None:
        self.text_index = build_text_index(self.document)

    # ── References ──────────────────────────────────────────────────────

    def tree_for(self, name: str) -> EntityReferenceTree | None:
        references = self.references_for(name)
        if not references:
            return None
        definitions = self.definitions[name]
        return EntityReferenceTree(
            entity_name=name,
            primary_tag=definitions[0].tag,
            definitions=definitions,
            references=references,
        )

    def references_for(self, name: str) -> list[ReferenceEntry]:
        references: list[ReferenceEntry] = []
        seen: set[tuple[str, str, str, str]] = set()

        for element in self.text_index.get(name, []):
            tag = local_tag(element)
            if tag == NAME_TAG and self._is_own_name(element, name):
                continue
            if tag not in self.options.reference_tags:
                continue

            owner = self._owning_entity(element)
            if owner is None:
                continue
            owner_name = self.detector.named_text(owner)
            if owner_name == name:
                continue

            context_tag, context_path = self._context(element)
            entry = ReferenceEntry(
                parent_entity_name=owner_name,
                parent_entity_tag=local_tag(owner),
                parent_transaction_id=owner.get(TRANSACTION_ID_ATTR, ''),
                context_tag=context_tag,
                context_path=context_path,
                reference_element=tag,
                full_path=self._full_path(element),
            )
            if entry.dedupe_key in seen:
                continue
            seen.add(entry.dedupe_key)
            references.append(entry)
        return references

    def _is_own_name(self, element: ET.Element, name: str) -> bool:
        parent = self.document.parent_of(element)
        return parent is not None and self.detector.named_text(parent) == name

    def _owning_entity(self, element: ET.Element) -> ET.Element | None:
        """Nearest ancestor with a non-empty Name; containers end the search."""
        for ancestor in self.document.ancestors(element):
            if local_tag(ancestor) in CONTAINER_TAGS:
                return None
            if self.detector.named_text(ancestor):
                return ancestor
        return None

    def _context(self, element: ET.Element) -> tuple[str, str]:
        path = [local_tag(element)]
        for ancestor in self.document.ancestors(element):
            if local_tag(ancestor) in ROOT_PARENT_TAGS or self.detector.named_text(ancestor):
                break
            path.insert(0, local_tag(ancestor))
        context_tag = path[-2] if len(path) > 1 else path[0]
        return context_tag, ' > '.join(path)

    def _full_path(self, element: ET.Element) -> str:
        path = [local_tag(element)]
        for ancestor in self.document.ancestors(element):
            if local_tag(ancestor) == 'Configuration':
                break
            path.insert(0, local_tag(ancestor))
        return ' > '.join(path)


class ReferenceIndexBuilder:
    """Builds the name → EntityReferenceTree index of one document.

    Args:
        options: Chunk size and reference tag allow-list.
    """

    def __init__(self, options: ReferenceIndexOptions | None = None):
        self.options = options or ReferenceIndexOptions()

    async def build(
        self,
        document: ParsedDocument,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> dict[str, EntityReferenceTree] | None:
        """Build the index, yielding to the event loop every chunk of names.

        Returns:
            The index, or None when `cancel_token` was cancelled. A cancelled
            build never reports completion.
        """
        report = on_progress or _noop_progress
        token = cancel_token or CancellationToken()
        start_time = time.time()

        report(PROGRESS_PARSED)
        scan = _ReferenceScan(document, self.options)
        scan.collect_definitions()
        report(PROGRESS_ENTITIES)
        names = list(scan.definitions)
        report(PROGRESS_NAME_MAP)
        scan.build_text_index()
        report(PROGRESS_TEXT_INDEX)

        if token.cancelled:
            logger.debug("Reference build cancelled before scanning")
            return None

        tree: dict[str, EntityReferenceTree] = {}
        total = len(names)
        chunk_size = max(1, self.options.chunk_size)
        for i, name in enumerate(names):
            entry = scan.tree_for(name)
            if entry is not None:
                tree[name] = entry

            if i > 0 and i % chunk_size == 0:
                report(min(PROGRESS_TEXT_INDEX + (i * PROGRESS_SCAN_SPAN) // total, PROGRESS_SCAN_CAP))
                await asyncio.sleep(0)
                if token.cancelled:
                    logger.debug("Reference build cancelled after %d of %d names", i, total)
                    return None

        if token.cancelled:
            return None
        report(PROGRESS_DONE)
        logger.debug(
            "Indexed references for %d of %d names in %.3fs", len(tree), total, time.time() - start_time,
        )
        return tree

    def build_sync(self, document: ParsedDocument) -> dict[str, EntityReferenceTree]:
        """Build the whole index without yielding."""
        scan = _ReferenceScan(document, self.options)
        scan.collect_definitions()
        scan.build_text_index()
        tree: dict[str, EntityReferenceTree] = {}
        for name in scan.definitions:
            entry = scan.tree_for(name)
            if entry is not None:
                tree[name] = entry
        return tree
