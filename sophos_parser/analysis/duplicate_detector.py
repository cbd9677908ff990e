"""Detection of redundant host, service and group definitions.

Two entities are exact duplicates when every field except Name matches
after normalization (strings trimmed, empty values dropped, arrays
compared regardless of order). Entities are only compared with others
of the same kind, e.g. IPHosts with the same HostType.

Groups additionally report partial duplicates: groups that share some,
but not all, members.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sophos_parser.domain.constants import NAME_TAG
from sophos_parser.domain.models import ConfigurationModel, Entity
from sophos_parser.signature import SignatureService

logger = logging.getLogger(__name__)

SYSTEM_HOST_TYPES = frozenset({'System Host', 'SystemHost'})

# collection key -> entity type
EXACT_COLLECTIONS: dict[str, str] = {
    'ip_hosts': 'IPHost',
    'fqdn_hosts': 'FQDNHost',
    'mac_hosts': 'MACHost',
    'services': 'Service',
}
GROUP_COLLECTIONS: dict[str, str] = {
    'ip_host_groups': 'IPHostGroup',
    'fqdn_host_groups': 'FQDNHostGroup',
    'service_groups': 'ServiceGroup',
}

# Types grouped by IPFamily before comparison
_IP_FAMILY_TYPES = frozenset({'FQDNHost', 'MACHost', 'IPHostGroup', 'FQDNHostGroup', 'ServiceGroup'})


@dataclass
class DuplicateMember:
    """One entity of a duplicate group."""

    entity: Entity
    index: int
    entity_type: str
    type_key: str = ''
    common_members: list[str] = field(default_factory=list)
    all_members: list[str] = field(default_factory=list)
    unique_members: list[str] = field(default_factory=list)


@dataclass
class DuplicateGroup:
    """Entities that define the same thing under different names."""

    entity_type: str
    members: list[DuplicateMember] = field(default_factory=list)
    type_key: str = ''
    key: dict[str, Any] | None = None
    is_partial: bool = False
    common_members: list[str] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [m.entity.name for m in self.members]


# ── Normalization ────────────────────────────────────────────────────────

def normalize_value(value: Any) -> Any:
    """Trim strings and drop empty values; returns None when nothing remains."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        items = [normalize_value(v) for v in value]
        return [v for v in items if v is not None]
    if isinstance(value, dict):
        normalized = {}
        for key, v in value.items():
            nv = normalize_value(v)
            if nv is not None:
                normalized[key] = nv
        return normalized or None
    return value


def comparison_key(entity: Entity) -> dict[str, Any] | None:
    """All fields except Name, normalized; None when only Name is set."""
    others = {k: v for k, v in entity.fields.items() if k != NAME_TAG}
    return normalize_value(others)


def type_key(entity: Entity, entity_type: str) -> str:
    """The field value that decides which entities are comparable."""
    fields = entity.fields
    if entity_type == 'IPHost' and fields.get('HostType'):
        return f"HostType:{normalize_value(fields['HostType'])}"
    if entity_type == 'Service' and fields.get('Type'):
        return f"Type:{normalize_value(fields['Type'])}"
    if entity_type in _IP_FAMILY_TYPES:
        return f"IPFamily:{normalize_value(fields.get('IPFamily')) or 'default'}"
    return 'default'


def member_names(entity: Entity) -> list[str] | None:
    """Members of a host or service group, or None for non-groups."""
    fields = entity.fields
    members: Any = None
    for list_field, item_tag in (('HostList', 'Host'), ('FQDNHostList', 'FQDNHost')):
        wrapper = fields.get(list_field)
        if isinstance(wrapper, list):
            members = wrapper
        elif isinstance(wrapper, dict) and item_tag in wrapper:
            members = wrapper[item_tag]
        if members is not None:
            break
    if members is None:
        members = fields.get('Member') or fields.get('Members')
    if members is None:
        return None
    if not isinstance(members, list):
        members = [members]

    names = []
    for member in members:
        if isinstance(member, dict):
            name = '|'.join(str(v).strip() for v in member.values())
        else:
            name = str(member).strip()
        if name:
            names.append(name)
    return names


# ── Detection ────────────────────────────────────────────────────────────

def find_duplicates(entities: list[Entity], entity_type: str) -> list[DuplicateGroup]:
    """Groups of two or more entities with equal comparison keys."""
    by_type: dict[str, list[tuple[int, Entity]]] = {}
    for index, entity in enumerate(entities):
        if entity_type == 'IPHost' and entity.fields.get('HostType') in SYSTEM_HOST_TYPES:
            continue
        by_type.setdefault(type_key(entity, entity_type), []).append((index, entity))

    groups: list[DuplicateGroup] = []
    for tkey, typed_entities in by_type.items():
        seen: dict[str, DuplicateGroup] = {}
        for index, entity in typed_entities:
            key = comparison_key(entity)
            if not key:
                continue
            signature = SignatureService.signature(key)
            group = seen.get(signature)
            if group is None:
                group = DuplicateGroup(entity_type=entity_type, type_key=tkey, key=key)
                seen[signature] = group
            group.members.append(DuplicateMember(entity, index, entity_type, type_key=tkey))
        groups.extend(group for group in seen.values() if len(group.members) > 1)
    return groups


def find_partial_duplicates(entities: list[Entity], entity_type: str) -> list[DuplicateGroup]:
    """Groups of entities whose member lists overlap without being identical."""
    groups: list[DuplicateGroup] = []
    members_by_index = [member_names(entity) for entity in entities]

    for i, first in enumerate(entities):
        for j in range(i + 1, len(entities)):
            second = entities[j]
            members_a, members_b = members_by_index[i], members_by_index[j]
            if not members_a or not members_b:
                continue
            set_a, set_b = set(members_a), set(members_b)
            common = [m for m in members_a if m in set_b]
            if not common or (len(members_a) == len(members_b) and len(common) == len(members_a)):
                continue

            pair = [
                DuplicateMember(first, i, entity_type, common_members=common, all_members=members_a,
                                unique_members=[m for m in members_a if m not in set_b]),
                DuplicateMember(second, j, entity_type, common_members=common, all_members=members_b,
                                unique_members=[m for m in members_b if m not in set_a]),
            ]
            group = next(
                (g for g in groups if first.name in g.names or second.name in g.names), None,
            )
            if group is None:
                groups.append(DuplicateGroup(
                    entity_type=entity_type, members=pair, is_partial=True, common_members=common,
                ))
                continue
            for member in pair:
                if member.entity.name not in group.names:
                    group.members.append(member)
    return groups


def analyze_duplicates(model: ConfigurationModel) -> dict[str, list[DuplicateGroup]]:
    """Duplicate groups per collection; exact group duplicates win over partial ones."""
    results: dict[str, list[DuplicateGroup]] = {}
    for key, entity_type in EXACT_COLLECTIONS.items():
        results[key] = find_duplicates(model.collection(key), entity_type)

    for key, entity_type in GROUP_COLLECTIONS.items():
        entities = model.collection(key)
        exact = find_duplicates(entities, entity_type)
        exact_names = {name for group in exact for name in group.names}
        partial = [
            group for group in find_partial_duplicates(entities, entity_type)
            if not any(name in exact_names for name in group.names)
        ]
        results[key] = exact + partial

    logger.debug("Found %d duplicate groups", total_duplicate_count(results))
    return results


def total_duplicate_count(results: dict[str, list[DuplicateGroup]]) -> int:
    return sum(len(groups) for groups in results.values())


def total_duplicate_entity_count(results: dict[str, list[DuplicateGroup]]) -> int:
    return sum(len(group.members) for groups in results.values() for group in groups)
