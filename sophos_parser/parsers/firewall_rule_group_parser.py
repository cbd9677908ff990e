"""Parser for FirewallRuleGroup elements."""

import xml.etree.ElementTree as ET

from sophos_parser.domain.models import FirewallRuleGroup
from sophos_parser.domain.value_parser import NestedValueParser
from sophos_parser.parsers.base_parser import BaseParser


class FirewallRuleGroupParser(BaseParser):
    """Reads the group's name, description, policy type and member rule names."""

    def parse(self, element: ET.Element, index: int) -> FirewallRuleGroup:
        return FirewallRuleGroup(
            transaction_id=self._get_transaction_id(element),
            name=self._get_text(element, 'Name'),
            description=self._get_text(element, 'Description'),
            security_policy_list=self._get_texts(element, 'SecurityPolicyList/SecurityPolicy'),
            policy_type=self._get_text(element, 'Policytype'),
            fields=NestedValueParser.parse_object(element),
            raw_xml=self._serialize(element),
        )
