"""Shared data models used across parser modules."""

from dataclasses import dataclass, field
from typing import Any, Iterator

from sophos_parser.domain.constants import DIFF_IGNORED_ATTRIBUTES, REFERENCE_CHUNK_SIZE, REFERENCE_TAGS
from sophos_parser.domain.enums import ChangeType

# str | list[str] | list[dict] | dict[str, FieldValue]
FieldValue = str | list | dict


# ── Entities ─────────────────────────────────────────────────────────────

@dataclass
class Entity:
    """A named or transactional configuration element."""

    tag: str
    name: str
    transaction_id: str = ''
    fields: dict[str, Any] = field(default_factory=dict)
    raw_xml: str = ''
    index: int = 0
    attributes: dict[str, str] = field(default_factory=dict)
    interface: str | None = None
    zone: str | None = None
    member_interfaces: list[str] = field(default_factory=list)
    config_index: int | None = None
    parent_entity_name: str | None = None
    parent_entity_tag: str | None = None
    # Direct child of Configuration/Entities; nested named sub-elements are not diffed
    root_level: bool = True

    @property
    def key(self) -> str:
        """Deduplication key within one document."""
        return f'{self.tag}|{self.transaction_id}|{self.name}'

    @property
    def identity(self) -> str:
        """Cross-snapshot identity used by the differ."""
        return f'{self.tag}|{self.name}'


@dataclass
class RuleExclusions:
    """Zones, networks and services explicitly excluded from a rule."""

    source_zones: list[str] = field(default_factory=list)
    destination_zones: list[str] = field(default_factory=list)
    source_networks: list[str] = field(default_factory=list)
    destination_networks: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.source_zones or self.destination_zones or self.source_networks
                    or self.destination_networks or self.services)


@dataclass
class FirewallRule:
    """A firewall rule with its policy flattened for tabular display.

    Empty strings and lists mean "absent in the export"; display defaults
    such as "Any" are left to the caller.
    """

    index: int
    transaction_id: str = ''
    name: str = ''
    description: str = ''
    status: str = ''
    ip_family: str = ''
    policy_type: str = ''
    position: str = ''
    after: str = ''
    network_policy: dict[str, Any] | None = None
    user_policy: dict[str, Any] | None = None
    policy_source: str | None = None
    action: str = ''
    log_traffic: str = ''
    schedule: str = ''
    source_zones: list[str] = field(default_factory=list)
    destination_zones: list[str] = field(default_factory=list)
    source_networks: list[str] = field(default_factory=list)
    destination_networks: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    web_filter: str = ''
    application_control: str = ''
    intrusion_prevention: str = ''
    scan_virus: str = ''
    zero_day_protection: str = ''
    proxy_mode: str = ''
    decrypt_https: str = ''
    identity: str = ''
    exclusions: RuleExclusions = field(default_factory=RuleExclusions)
    fields: dict[str, Any] = field(default_factory=dict)
    attributes: dict[str, str] = field(default_factory=dict)
    raw_xml: str = ''

    @property
    def policy(self) -> dict[str, Any]:
        """The nested policy structure the flattened view was built from."""
        if self.policy_source == 'NetworkPolicy':
            return self.network_policy or {}
        if self.policy_source == 'UserPolicy':
            return self.user_policy or {}
        return {}

    def to_entity(self) -> Entity:
        return Entity(
            tag='FirewallRule', name=self.name, transaction_id=self.transaction_id,
            fields=self.fields, raw_xml=self.raw_xml, index=self.index,
            attributes=self.attributes,
        )


@dataclass
class FirewallRuleGroup:
    """A named group of firewall rules."""

    transaction_id: str = ''
    name: str = ''
    description: str = ''
    security_policy_list: list[str] = field(default_factory=list)
    policy_type: str = ''
    fields: dict[str, Any] = field(default_factory=dict)
    raw_xml: str = ''

    def to_entity(self) -> Entity:
        return Entity(
            tag='FirewallRuleGroup', name=self.name, transaction_id=self.transaction_id,
            fields=self.fields, raw_xml=self.raw_xml,
        )


@dataclass
class SSLTLSInspectionRule:
    """An SSL/TLS inspection rule with flattened match criteria."""

    index: int
    transaction_id: str = ''
    name: str = ''
    description: str = ''
    is_default: str = ''
    enable: str = ''
    log_connections: str = ''
    decrypt_action: str = ''
    decryption_profile: str = ''
    move_to_name: str = ''
    move_to_order_by: str = ''
    source_zones: list[str] = field(default_factory=list)
    source_networks: list[str] = field(default_factory=list)
    destination_zones: list[str] = field(default_factory=list)
    destination_networks: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    identity: list[str] = field(default_factory=list)
    websites: list[str] = field(default_factory=list)
    fields: dict[str, Any] = field(default_factory=dict)
    raw_xml: str = ''


@dataclass
class PortEntities:
    """Sub-interfaces hanging off one physical port."""

    vlans: list[Entity] = field(default_factory=list)
    aliases: list[Entity] = field(default_factory=list)
    xfrm_interfaces: list[Entity] = field(default_factory=list)


@dataclass
class LagMembers:
    """A LAG entity and the Interface entities that belong to it."""

    lag: Entity
    members: list[Entity] = field(default_factory=list)


@dataclass
class ConfigurationMetadata:
    """Attributes of the Configuration root element."""

    api_version: str = ''
    is_wifi6: str = '0'
    ips_cat_ver: str = ''


@dataclass
class ConfigurationModel:
    """Normalized entity model of one configuration export."""

    metadata: ConfigurationMetadata = field(default_factory=ConfigurationMetadata)
    firewall_rules: list[FirewallRule] = field(default_factory=list)
    firewall_rule_groups: list[FirewallRuleGroup] = field(default_factory=list)
    ssl_tls_inspection_rules: list[SSLTLSInspectionRule] = field(default_factory=list)
    collections: dict[str, list[Entity]] = field(default_factory=dict)
    entities_by_tag: dict[str, list[Entity]] = field(default_factory=dict)
    ports_with_entities: dict[str, PortEntities] = field(default_factory=dict)
    lags_with_members: dict[str, LagMembers] = field(default_factory=dict)

    def collection(self, key: str) -> list[Entity]:
        return self.collections.get(key, [])

    @property
    def ip_hosts(self) -> list[Entity]:
        return self.collection('ip_hosts')

    @property
    def services(self) -> list[Entity]:
        return self.collection('services')

    def all_entities(self) -> Iterator[Entity]:
        """Every entity in the model as a generic record, rules first."""
        for rule in self.firewall_rules:
            yield rule.to_entity()
        for group in self.firewall_rule_groups:
            yield group.to_entity()
        for entities in self.collections.values():
            yield from entities
        for entities in self.entities_by_tag.values():
            yield from entities


# ── References ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReferenceEntry:
    """One place where an entity name is used by another entity."""

    parent_entity_name: str
    parent_entity_tag: str
    parent_transaction_id: str
    context_tag: str
    context_path: str
    reference_element: str
    full_path: str

    @property
    def dedupe_key(self) -> tuple[str, str, str, str]:
        return (self.parent_entity_tag, self.parent_entity_name, self.context_tag, self.reference_element)


@dataclass
class EntityReferenceTree:
    """All definitions of a name and every reference to it."""

    entity_name: str
    primary_tag: str
    definitions: list[Entity] = field(default_factory=list)
    references: list[ReferenceEntry] = field(default_factory=list)


# ── Diff ─────────────────────────────────────────────────────────────────

@dataclass
class ValueDiff:
    """Recursive comparison result for one value.

    Arrays fill added/removed/unchanged (and modified for object arrays),
    objects fill children keyed by field name.
    """

    change: ChangeType
    old_value: Any = None
    new_value: Any = None
    added: list[Any] = field(default_factory=list)
    removed: list[Any] = field(default_factory=list)
    unchanged: list[Any] = field(default_factory=list)
    modified: list['ValueDiff'] = field(default_factory=list)
    children: dict[str, 'ValueDiff'] = field(default_factory=dict)

    @property
    def is_changed(self) -> bool:
        return self.change is not ChangeType.UNCHANGED


@dataclass
class FieldChange:
    """A differing top-level field (or `@attribute`) of a modified entity."""

    field: str
    change_type: ChangeType
    old_value: Any = None
    new_value: Any = None
    detail: ValueDiff | None = None


@dataclass
class DiffItem:
    """An entity classified by the differ."""

    tag: str
    name: str
    key: str
    raw_xml: str = ''
    old_raw_xml: str = ''
    new_raw_xml: str = ''
    changes: list[FieldChange] = field(default_factory=list)


@dataclass
class DiffSummary:
    added: int
    removed: int
    modified: int
    unchanged: int
    total_old: int
    total_new: int


@dataclass
class DiffResult:
    """Outcome of comparing two configuration models."""

    added: list[DiffItem] = field(default_factory=list)
    removed: list[DiffItem] = field(default_factory=list)
    modified: list[DiffItem] = field(default_factory=list)
    unchanged: list[DiffItem] = field(default_factory=list)

    @property
    def summary(self) -> DiffSummary:
        return DiffSummary(
            added=len(self.added),
            removed=len(self.removed),
            modified=len(self.modified),
            unchanged=len(self.unchanged),
            total_old=len(self.removed) + len(self.modified) + len(self.unchanged),
            total_new=len(self.added) + len(self.modified) + len(self.unchanged),
        )


# ── Options & Results ────────────────────────────────────────────────────

@dataclass
class DiffOptions:
    """Options controlling entity comparison."""

    min_shared_keys: int = 1
    ignored_attributes: frozenset[str] = DIFF_IGNORED_ATTRIBUTES


@dataclass
class ReferenceIndexOptions:
    """Options controlling the reference index build."""

    chunk_size: int = REFERENCE_CHUNK_SIZE
    reference_tags: frozenset[str] = frozenset(REFERENCE_TAGS)


@dataclass
class ParseError:
    """A failure isolated to one file and operation."""

    file: str
    error: str
    operation: str = 'parse'


@dataclass
class DumpOptions:
    """Options controlling the dump output."""

    include_raw_xml: bool = False
    analyze: bool = False
    pretty: bool = True


@dataclass
class DumpResult:
    """Result summary of a dump operation."""

    operation: str
    entities_parsed: int
    errors_count: int
    output_dir: str
