"""Domain enums for the sophos parser."""
from enum import Enum


class ChangeType(Enum):
    """Diff classification of an entity or a value."""
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


class RuleIssueType(Enum):
    """Firewall rule analysis findings."""
    DUPLICATE = "duplicate"
    SHADOW = "shadow"
