"""Tree views of the reference index for display."""

from typing import Any

from sophos_parser.domain.models import EntityReferenceTree


def get_entity_reference_tree(
    index: dict[str, EntityReferenceTree], entity_name: str,
) -> EntityReferenceTree | None:
    return index.get(entity_name)


def convert_to_visualization_tree(entry: EntityReferenceTree | None) -> dict[str, Any]:
    """Group an entity's references by referencing entity.

    Returns a nested dict: the entity node, one 'parent-entity' child per
    referencing entity, and one 'context' child per place it is used.
    """
    if entry is None or not entry.references:
        return {
            'name': entry.entity_name if entry is not None else 'Unknown',
            'type': 'entity',
            'children': [],
        }

    grouped: dict[str, dict[str, Any]] = {}
    for ref in entry.references:
        key = f'{ref.parent_entity_tag}:{ref.parent_entity_name}'
        group = grouped.setdefault(key, {
            'name': f'{ref.parent_entity_tag}: {ref.parent_entity_name}',
            'type': 'parent-entity',
            'parent_entity_name': ref.parent_entity_name,
            'parent_entity_tag': ref.parent_entity_tag,
            'parent_transaction_id': ref.parent_transaction_id,
            'children': [],
        })
        group['children'].append({
            'name': f'{ref.context_tag} > {ref.reference_element}',
            'type': 'context',
            'context_tag': ref.context_tag,
            'reference_element': ref.reference_element,
            'context_path': ref.context_path,
        })

    return {
        'name': entry.entity_name,
        'type': 'entity',
        'children': list(grouped.values()),
    }
