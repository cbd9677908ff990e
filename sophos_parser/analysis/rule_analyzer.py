"""Duplicate and shadowed firewall rule detection.

A rule is a duplicate of an earlier rule when action, zones, networks,
services, schedule, security profiles and misc flags all match (list
fields compared as sets). A rule is shadowed when an earlier rule with
the same action and settings matches a superset of its traffic, so the
later rule can never fire.

Missing zones, networks and services mean "Any".
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sophos_parser.domain.constants import ANY, POLICY_LIST_FIELDS, POLICY_MISC_FIELDS, POLICY_SCALAR_FIELDS
from sophos_parser.domain.enums import RuleIssueType
from sophos_parser.domain.models import FirewallRule

logger = logging.getLogger(__name__)

# Wrapper keys tried, in order, when a list field parsed to an object
_WRAPPER_KEYS = ('Zone', 'Network', 'Service', 'Interface')

# Human-readable names for shadow reasons, in check order
_LIST_FIELD_LABELS = {
    'source_zones': 'source zones',
    'destination_zones': 'destination zones',
    'services': 'services',
    'source_networks': 'source networks',
    'destination_networks': 'destination networks',
}


@dataclass
class RuleIssue:
    """A duplicate or shadowed rule, identified by rule index."""

    rule_id: int
    type: RuleIssueType
    of: int | None = None
    by: int | None = None
    reason: str = ''


@dataclass
class NormalizedRule:
    """Comparable view of a rule's match conditions and settings."""

    lists: dict[str, list[str]] = field(default_factory=dict)
    scalars: dict[str, str | None] = field(default_factory=dict)


def extract_array(value: Any) -> list[str]:
    """Normalize a list-valued policy field; empty or missing means ['Any']."""
    if value is None:
        return [ANY]
    if isinstance(value, list):
        items = [str(v).strip() for v in value if not isinstance(v, (dict, list))]
        items = [v for v in items if v]
        return items or [ANY]
    if isinstance(value, dict):
        for key in _WRAPPER_KEYS:
            if value.get(key):
                return extract_array(value[key])
        values = list(value.values())
        if values and isinstance(values[0], list):
            return extract_array(values[0])
        if len(values) == 1 and isinstance(values[0], str):
            return extract_array(values[0])
        return [ANY]
    text = str(value).strip()
    return [text] if text else [ANY]


def normalize_value(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def normalize_rule(rule: FirewallRule) -> NormalizedRule:
    policy = rule.policy
    normalized = NormalizedRule()
    for attr, (policy_field, _item_tag) in POLICY_LIST_FIELDS.items():
        normalized.lists[attr] = extract_array(policy.get(policy_field) or None)
    for attr, policy_field in {**POLICY_SCALAR_FIELDS, **POLICY_MISC_FIELDS}.items():
        normalized.scalars[attr] = normalize_value(policy.get(policy_field))
    return normalized


def same_set(a: list[str], b: list[str]) -> bool:
    return set(a) == set(b)


def contains_all(broader: list[str], narrower: list[str]) -> bool:
    """Whether `broader` covers every item of `narrower`; 'Any' covers everything."""
    if ANY in broader:
        return True
    return set(narrower) <= set(broader)


def is_duplicate(rule_a: FirewallRule, rule_b: FirewallRule) -> bool:
    norm_a, norm_b = normalize_rule(rule_a), normalize_rule(rule_b)
    if norm_a.scalars != norm_b.scalars:
        return False
    return all(same_set(norm_a.lists[attr], norm_b.lists[attr]) for attr in norm_a.lists)


def shadow_reason(earlier: FirewallRule, later: FirewallRule) -> str | None:
    """Why `earlier` shadows `later`, or None when it does not."""
    norm_a, norm_b = normalize_rule(earlier), normalize_rule(later)
    if norm_a.scalars.get('action') != norm_b.scalars.get('action'):
        return None

    reasons = []
    for attr, label in _LIST_FIELD_LABELS.items():
        if not contains_all(norm_a.lists[attr], norm_b.lists[attr]):
            return None
        if not same_set(norm_a.lists[attr], norm_b.lists[attr]):
            reasons.append(label)

    if norm_a.scalars != norm_b.scalars:
        return None

    if reasons:
        return f"broader match on {', '.join(reasons)}"
    return 'identical conditions (duplicate)'


def analyze_firewall_rules(rules: list[FirewallRule]) -> list[RuleIssue]:
    """Find duplicate rules first, then shadowed rules among the rest.

    Rules without a policy are skipped. Each rule is reported at most once
    per issue type, against the first earlier rule that matches.
    """
    candidates = [rule for rule in rules if rule.policy_source is not None]
    issues: list[RuleIssue] = []

    for i, rule in enumerate(candidates):
        for earlier in candidates[:i]:
            if is_duplicate(earlier, rule):
                issues.append(RuleIssue(rule_id=rule.index, type=RuleIssueType.DUPLICATE, of=earlier.index))
                break

    duplicate_ids = {issue.rule_id for issue in issues}
    remaining = [rule for rule in candidates if rule.index not in duplicate_ids]
    for i, rule in enumerate(remaining):
        for earlier in remaining[:i]:
            reason = shadow_reason(earlier, rule)
            if reason is not None:
                issues.append(RuleIssue(
                    rule_id=rule.index, type=RuleIssueType.SHADOW, by=earlier.index, reason=reason,
                ))
                break

    logger.debug("Analyzed %d rules: %d issues", len(candidates), len(issues))
    return issues
