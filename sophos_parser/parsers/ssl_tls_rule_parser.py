"""
Parser for SSLTLSInspectionRule elements.

Match criteria (zones, networks, services, identity, websites) are kept
as nested objects in `fields` and flattened into string lists.
"""

import xml.etree.ElementTree as ET
from typing import Any

from sophos_parser.domain.models import SSLTLSInspectionRule
from sophos_parser.domain.value_parser import NestedValueParser
from sophos_parser.parsers.base_parser import BaseParser
from sophos_parser.parsers.firewall_rule_parser import list_field, scalar_field


def website_names(websites: Any) -> list[str]:
    """Names of website activities/categories under a Websites object."""
    names: list[str] = []
    if isinstance(websites, str):
        return [websites] if websites else []
    if not isinstance(websites, (dict, list)):
        return names
    values = websites.values() if isinstance(websites, dict) else websites
    for value in values:
        items = value if isinstance(value, list) else [value]
        for item in items:
            if isinstance(item, dict) and isinstance(item.get('Name'), str):
                names.append(item['Name'])
            elif isinstance(item, str) and item:
                names.append(item)
    return names


class SSLTLSInspectionRuleParser(BaseParser):
    """Parser for SSL/TLS inspection rules."""

    SCALAR_FIELDS = {
        'name': 'Name',
        'description': 'Description',
        'is_default': 'IsDefault',
        'enable': 'Enable',
        'log_connections': 'LogConnections',
        'decrypt_action': 'DecryptAction',
        'decryption_profile': 'DecryptionProfile',
    }

    def parse(self, element: ET.Element, index: int) -> SSLTLSInspectionRule:
        fields = NestedValueParser.parse_object(element)
        rule = SSLTLSInspectionRule(
            index=index,
            transaction_id=self._get_transaction_id(element),
            fields=fields,
            raw_xml=self._serialize(element),
        )
        for attr, tag in self.SCALAR_FIELDS.items():
            setattr(rule, attr, self._get_text(element, tag))

        move_to = fields.get('MoveTo')
        if isinstance(move_to, dict):
            rule.move_to_name = scalar_field(move_to, 'Name')
            rule.move_to_order_by = scalar_field(move_to, 'OrderBy')

        rule.source_zones = list_field(fields, 'SourceZones', 'Zone')
        rule.source_networks = list_field(fields, 'SourceNetworks', 'Network')
        rule.destination_zones = list_field(fields, 'DestinationZones', 'Zone')
        rule.destination_networks = list_field(fields, 'DestinationNetworks', 'Network')
        rule.services = list_field(fields, 'Services', 'Service')
        rule.identity = list_field(fields, 'Identity', 'Members')
        rule.websites = website_names(fields.get('Websites'))
        return rule
