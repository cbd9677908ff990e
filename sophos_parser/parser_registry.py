"""Parser registry for configuration element tags."""

from sophos_parser.domain.constants import KNOWN_COLLECTIONS
from sophos_parser.parsers.base_parser import BaseParser
from sophos_parser.parsers.entity_parser import EntityParser


class ParserRegistry:
    """Registry mapping element tags to parser instances."""

    # Tags with structural post-processing in the extractor
    RELATIONSHIP_TAGS = ('VLAN', 'Alias', 'LAG', 'Interface', 'VPNIPSecConnection', 'XFRMInterface')

    def __init__(self):
        self._parsers: dict[str, BaseParser] = {}
        self._entity_parser = EntityParser()
        self._register_default_parsers()

    def _register_default_parsers(self) -> None:
        from sophos_parser.parsers.firewall_rule_parser import FirewallRuleParser
        from sophos_parser.parsers.firewall_rule_group_parser import FirewallRuleGroupParser
        from sophos_parser.parsers.ssl_tls_rule_parser import SSLTLSInspectionRuleParser

        self.register_parser('FirewallRule', FirewallRuleParser())
        self.register_parser('FirewallRuleGroup', FirewallRuleGroupParser())
        self.register_parser('SSLTLSInspectionRule', SSLTLSInspectionRuleParser())

        for selectors, canonical_tag in KNOWN_COLLECTIONS.values():
            for selector in selectors:
                self.register_parser(selector, self._entity_parser)
        for tag in self.RELATIONSHIP_TAGS:
            self.register_parser(tag, self._entity_parser)

    def get_parser(self, tag: str) -> BaseParser:
        return self._parsers.get(tag, self._entity_parser)

    def register_parser(self, tag: str, parser: BaseParser) -> None:
        self._parsers[tag] = parser

    def get_supported_types(self) -> list[str]:
        return list(self._parsers.keys())

    def get_entity_parser(self) -> EntityParser:
        return self._entity_parser
