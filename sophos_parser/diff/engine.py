"""Entity-level diff between two configuration models."""

import logging
import time
from typing import Any

from sophos_parser.diff.deep_compare import deep_compare_values
from sophos_parser.domain.enums import ChangeType
from sophos_parser.domain.models import (
    ConfigurationModel, DiffItem, DiffOptions, DiffResult, Entity, FieldChange,
)
from sophos_parser.signature import SignatureService

logger = logging.getLogger(__name__)


def index_entities(model: ConfigurationModel) -> dict[str, Entity]:
    """Top-level entities keyed by `tag|name`; the first occurrence of a key wins.

    Named sub-elements such as a rule's `After` block change together with
    their owning entity and are reported through its field changes.
    """
    index: dict[str, Entity] = {}
    collisions = 0
    for entity in model.all_entities():
        if not entity.root_level:
            continue
        if entity.identity in index:
            collisions += 1
            continue
        index[entity.identity] = entity
    if collisions:
        logger.warning("%d entities share a tag|name key with an earlier entity and were not diffed", collisions)
    return index


class DiffEngine:
    """Classifies entities of two models as added, removed, modified or unchanged.

    Args:
        options: Comparison options (default DiffOptions()).
    """

    def __init__(self, options: DiffOptions | None = None):
        self.options = options or DiffOptions()

    def diff(self, old_model: ConfigurationModel, new_model: ConfigurationModel) -> DiffResult:
        start_time = time.time()
        old_index = index_entities(old_model)
        new_index = index_entities(new_model)

        result = DiffResult()
        for key, old_entity in old_index.items():
            new_entity = new_index.get(key)
            if new_entity is None:
                result.removed.append(self._item(old_entity))
                continue
            changes = self.compare_entities(old_entity, new_entity)
            if changes:
                result.modified.append(DiffItem(
                    tag=old_entity.tag,
                    name=old_entity.name,
                    key=key,
                    old_raw_xml=old_entity.raw_xml,
                    new_raw_xml=new_entity.raw_xml,
                    changes=changes,
                ))
            else:
                result.unchanged.append(self._item(new_entity))

        for key, new_entity in new_index.items():
            if key not in old_index:
                result.added.append(self._item(new_entity))

        for items in (result.added, result.removed, result.modified, result.unchanged):
            items.sort(key=lambda item: (item.tag, item.name))

        summary = result.summary
        logger.debug(
            "Diff: %d added, %d removed, %d modified, %d unchanged in %.3fs",
            summary.added, summary.removed, summary.modified, summary.unchanged,
            time.time() - start_time,
        )
        return result

    def compare_entities(self, old: Entity, new: Entity) -> list[FieldChange]:
        """Field-level changes between two entities with the same identity.

        Returns an empty list when the canonical signatures match, or when
        they differ only in ways deep comparison treats as equal.
        """
        ignored = self.options.ignored_attributes
        if SignatureService.entity_signature(old, ignored) == SignatureService.entity_signature(new, ignored):
            return []

        changes: list[FieldChange] = []
        for field_name in _union_keys(old.fields, new.fields):
            old_value = old.fields.get(field_name)
            new_value = new.fields.get(field_name)
            detail = deep_compare_values(old_value, new_value, self.options)
            if detail.is_changed:
                changes.append(FieldChange(field_name, detail.change, old_value, new_value, detail))

        for attr in _union_keys(old.attributes, new.attributes):
            if attr in ignored:
                continue
            old_value = old.attributes.get(attr)
            new_value = new.attributes.get(attr)
            detail = deep_compare_values(old_value, new_value, self.options)
            if detail.is_changed:
                changes.append(FieldChange(f'@{attr}', detail.change, old_value, new_value, detail))
        return changes

    @staticmethod
    def _item(entity: Entity) -> DiffItem:
        return DiffItem(tag=entity.tag, name=entity.name, key=entity.identity, raw_xml=entity.raw_xml)


def _union_keys(old: dict[str, Any], new: dict[str, Any]) -> list[str]:
    return list(old) + [k for k in new if k not in old]


def group_diff_by_type(result: DiffResult) -> dict[str, dict[str, list[DiffItem]]]:
    """Diff items grouped by entity tag, tags sorted."""
    grouped: dict[str, dict[str, list[DiffItem]]] = {}
    for change_type in ChangeType:
        for item in getattr(result, change_type.value):
            bucket = grouped.setdefault(item.tag, {c.value: [] for c in ChangeType})
            bucket[change_type.value].append(item)
    return dict(sorted(grouped.items()))
