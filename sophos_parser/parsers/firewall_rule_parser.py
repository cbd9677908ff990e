"""
Parser for FirewallRule elements.

A rule carries its match criteria in either a NetworkPolicy or a
UserPolicy subtree. The policy is kept as a nested object and also
flattened into plain string/list attributes for tabular display.

List-valued policy fields arrive in three shapes depending on how many
items the export holds:

  - `['LAN', 'WAN']`        two or more items (item tag dropped)
  - `{'Zone': 'LAN'}`       a single wrapped item
  - `'LAN'`                 a bare scalar

All three are normalized to `list[str]`.
"""

import xml.etree.ElementTree as ET
from typing import Any

from sophos_parser.domain.constants import POLICY_LIST_FIELDS, POLICY_SCALAR_FIELDS, POLICY_TAGS
from sophos_parser.domain.field_walker import walk_field_paths
from sophos_parser.domain.models import FirewallRule, RuleExclusions
from sophos_parser.domain.value_parser import NestedValueParser
from sophos_parser.parsers.base_parser import BaseParser


def list_field(container: Any, field_name: str, item_tag: str) -> list[str]:
    """Normalize a list-valued policy field to a list of strings."""
    if not isinstance(container, dict):
        return []
    value = container.get(field_name)
    if isinstance(value, str):
        return [value] if value else []
    return walk_field_paths(value, item_tag)


def scalar_field(container: Any, field_name: str) -> str:
    if not isinstance(container, dict):
        return ''
    value = container.get(field_name)
    return value if isinstance(value, str) else ''


def identity_members(identity: Any) -> list[str]:
    """Identity as a bare array, an object with Member, or a bare string."""
    if isinstance(identity, list):
        return [item for item in identity if isinstance(item, str) and item]
    if isinstance(identity, dict):
        return walk_field_paths(identity.get('Member'), '')
    if isinstance(identity, str) and identity:
        return [identity]
    return []


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


class FirewallRuleParser(BaseParser):
    """Parser for FirewallRule elements."""

    def parse(self, element: ET.Element, index: int) -> FirewallRule:
        """
        Parse a FirewallRule element into a FirewallRule.

        Args:
            element: The FirewallRule element
            index: Position of the rule in document order

        Returns:
            FirewallRule with nested policies and the flattened view. Missing
            values stay empty; no defaults are substituted.
        """
        policies: dict[str, dict[str, Any] | None] = {}
        for policy_tag in POLICY_TAGS:
            policy_elem = element.find(policy_tag)
            policies[policy_tag] = (
                NestedValueParser.parse_object(policy_elem) if policy_elem is not None else None
            )

        network_policy = policies['NetworkPolicy']
        user_policy = policies['UserPolicy']
        if network_policy is not None:
            policy_source = 'NetworkPolicy'
            policy = network_policy
        elif user_policy is not None:
            policy_source = 'UserPolicy'
            policy = user_policy
        else:
            policy_source = None
            policy = {}

        rule = FirewallRule(
            index=index,
            transaction_id=self._get_transaction_id(element),
            name=self._get_text(element, 'Name'),
            description=self._get_text(element, 'Description'),
            status=self._get_text(element, 'Status'),
            ip_family=self._get_text(element, 'IPFamily'),
            policy_type=self._get_text(element, 'PolicyType'),
            position=self._get_text(element, 'Position'),
            after=self._get_text(element, 'After/Name'),
            network_policy=network_policy,
            user_policy=user_policy,
            policy_source=policy_source,
            fields=NestedValueParser.parse_object(element),
            attributes=self._get_attributes(element),
            raw_xml=self._serialize(element),
        )

        for attr, policy_field in POLICY_SCALAR_FIELDS.items():
            setattr(rule, attr, scalar_field(policy, policy_field))
        for attr, (policy_field, item_tag) in POLICY_LIST_FIELDS.items():
            setattr(rule, attr, list_field(policy, policy_field, item_tag))

        if user_policy is not None:
            rule.identity = ', '.join(identity_members(user_policy.get('Identity')))
        rule.exclusions = self._parse_exclusions(policy.get('Exclusions'))
        return rule

    def _parse_exclusions(self, exclusions: Any) -> RuleExclusions:
        if not isinstance(exclusions, dict):
            return RuleExclusions()
        values = {
            attr: _unique(list_field(exclusions, policy_field, item_tag))
            for attr, (policy_field, item_tag) in POLICY_LIST_FIELDS.items()
        }
        return RuleExclusions(**values)
