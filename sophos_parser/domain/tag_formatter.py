"""Human-readable labels for PascalCase configuration tags."""

import re

_LOWER_UPPER_RE = re.compile(r'([a-z])([A-Z])')
_ACRONYM_RE = re.compile(r'([A-Z]+)([A-Z][a-z])')


def format_tag_name(tag_name: str | None) -> str:
    """Split a PascalCase or acronym-prefixed tag into words.

    Examples:
        >>> format_tag_name('IPHost')
        'IP Host'
        >>> format_tag_name('SMTPSSettings')
        'SMTPS Settings'
        >>> format_tag_name('FirewallRule')
        'Firewall Rule'
    """
    if not tag_name:
        return ''
    label = _LOWER_UPPER_RE.sub(r'\1 \2', tag_name)
    label = _ACRONYM_RE.sub(r'\1 \2', label)
    return label.strip()
