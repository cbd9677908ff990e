"""Extraction of the normalized entity model from a parsed export."""

import logging
import time
from typing import Any

from sophos_parser.config_reader import ParsedDocument
from sophos_parser.domain.constants import EXCLUDED_TAGS, KNOWN_COLLECTIONS, KNOWN_TAGS
from sophos_parser.domain.models import ConfigurationMetadata, ConfigurationModel, Entity
from sophos_parser.domain.tag_formatter import format_tag_name
from sophos_parser.domain.value_parser import local_tag
from sophos_parser.entity_detector import EntityDetector
from sophos_parser.extraction import relationships
from sophos_parser.parser_registry import ParserRegistry

logger = logging.getLogger(__name__)


def has_content(value: Any) -> bool:
    """Whether a parsed field value holds anything besides whitespace."""
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list):
        return any(has_content(item) if isinstance(item, str) else item is not None for item in value)
    if isinstance(value, dict):
        return len(value) > 0
    return value is not None


def is_meaningful(entity: Entity, tag: str) -> bool:
    """Drop placeholder entities: no real name, fields or transaction id, or only empty fields."""
    has_name = bool(entity.name) and entity.name != format_tag_name(tag)
    has_fields = bool(entity.fields)
    if not (has_name or has_fields or entity.transaction_id):
        return False
    if has_fields and not any(has_content(v) for v in entity.fields.values()):
        return False
    return True


class EntityExtractor:
    """Builds a ConfigurationModel from a ParsedDocument.

    Args:
        registry: Parser lookup by tag (default registry when omitted).
    """

    def __init__(self, registry: ParserRegistry | None = None):
        self.registry = registry or ParserRegistry()

    def extract(self, document: ParsedDocument) -> ConfigurationModel:
        start_time = time.time()
        detector = EntityDetector(document)
        entity_parser = self.registry.get_entity_parser()

        model = ConfigurationModel(metadata=self._parse_metadata(document))
        model.firewall_rules = self._parse_all(document, 'FirewallRule')
        model.firewall_rule_groups = self._parse_all(document, 'FirewallRuleGroup')
        model.ssl_tls_inspection_rules = self._parse_all(document, 'SSLTLSInspectionRule')

        for key, (selectors, canonical_tag) in KNOWN_COLLECTIONS.items():
            model.collections[key] = self._extract_collection(document, detector, selectors, canonical_tag)

        model.entities_by_tag = self._extract_dynamic(document, detector)

        # Structural relationships
        vlans = relationships.extract_vlans(document, entity_parser)
        aliases = relationships.extract_aliases(document, entity_parser)
        model.ports_with_entities = relationships.group_by_port(vlans, aliases)

        lags = relationships.extract_lags(document, entity_parser)
        model.lags_with_members = relationships.group_lag_members(
            lags, model.entities_by_tag.get('Interface', []),
        )

        vpn_connections = relationships.extract_vpn_connections(document, entity_parser)
        xfrm_interfaces = relationships.extract_xfrm_interfaces(document, entity_parser)
        relationships.attach_xfrm_interfaces(model.ports_with_entities, xfrm_interfaces, vpn_connections)

        for tag, entities in (
            ('VLAN', vlans), ('Alias', aliases), ('LAG', lags),
            ('VPNIPSecConnection', vpn_connections), ('XFRMInterface', xfrm_interfaces),
        ):
            if entities:
                model.entities_by_tag[tag] = entities

        logger.debug(
            "Extracted %d rules, %d collection entities, %d dynamic tags in %.3fs",
            len(model.firewall_rules),
            sum(len(v) for v in model.collections.values()),
            len(model.entities_by_tag),
            time.time() - start_time,
        )
        return model

    # ── Known Tags ──────────────────────────────────────────────────────

    def _parse_all(self, document: ParsedDocument, tag: str) -> list:
        parser = self.registry.get_parser(tag)
        return [parser.parse(el, idx) for idx, el in enumerate(document.find_all(tag))]

    def _parse_metadata(self, document: ParsedDocument) -> ConfigurationMetadata:
        config = document.configuration
        return ConfigurationMetadata(
            api_version=config.get('APIVersion', ''),
            is_wifi6=config.get('IS_WIFI6') or '0',
            ips_cat_ver=config.get('IPS_CAT_VER', ''),
        )

    def _extract_collection(
        self,
        document: ParsedDocument,
        detector: EntityDetector,
        selectors: tuple[str, ...],
        canonical_tag: str,
    ) -> list[Entity]:
        """Entities for one known collection, deduplicated by tag|transaction_id|name."""
        results: list[Entity] = []
        seen: set[str] = set()
        for selector in selectors:
            parser = self.registry.get_parser(selector)
            for el in document.find_all(selector):
                if not detector.is_entity_instance(el, require_root_transaction=False):
                    continue
                entity = parser.parse(el, len(results), canonical_tag)
                entity.root_level = document.is_root_level(el)
                if not is_meaningful(entity, canonical_tag):
                    continue
                if entity.key in seen:
                    continue
                seen.add(entity.key)
                results.append(entity)
        return results

    # ── Dynamic Tags ────────────────────────────────────────────────────

    def discover_tags(self, document: ParsedDocument, detector: EntityDetector) -> list[str]:
        """Tags outside the known set that have at least one entity candidate, in document order."""
        discovered: dict[str, None] = {}
        for el in document.iter_elements():
            tag = local_tag(el)
            if not tag or tag in KNOWN_TAGS or tag in EXCLUDED_TAGS or tag in discovered:
                continue
            if detector.is_entity_candidate(el):
                discovered[tag] = None
        return list(discovered)

    def _extract_dynamic(self, document: ParsedDocument, detector: EntityDetector) -> dict[str, list[Entity]]:
        entities_by_tag: dict[str, list[Entity]] = {}
        # Dedicated parsers return rule records; dynamic tags always become plain entities
        parser = self.registry.get_entity_parser()
        for tag in self.discover_tags(document, detector):
            elements = [el for el in document.find_all(tag) if detector.is_entity_instance(el)]
            entities = []
            for idx, el in enumerate(elements):
                entity = parser.parse(el, idx, tag)
                if is_meaningful(entity, tag):
                    entity.root_level = document.is_root_level(el)
                    entities.append(entity)
            if entities:
                entities_by_tag[tag] = entities
        return entities_by_tag
