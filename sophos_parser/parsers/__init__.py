"""Sophos configuration element parsers."""

from sophos_parser.parsers.base_parser import BaseParser
from sophos_parser.parsers.entity_parser import EntityParser
from sophos_parser.parsers.firewall_rule_parser import FirewallRuleParser
from sophos_parser.parsers.firewall_rule_group_parser import FirewallRuleGroupParser
from sophos_parser.parsers.ssl_tls_rule_parser import SSLTLSInspectionRuleParser

__all__ = [
    'BaseParser', 'EntityParser', 'FirewallRuleParser',
    'FirewallRuleGroupParser', 'SSLTLSInspectionRuleParser',
]
