"""Shared utility for walking dotted paths through parsed field values.

Parsed values do not keep one shape per tag: a wrapper with a single
`Zone` child parses to `{'Zone': 'LAN'}`, with two children to the bare
list `['LAN', 'WAN']` (the item tag is dropped). The walker steps
through lists at every level and, for list items that lack the next
key, treats that key as the dropped item tag.

Supports paths like:
  - 'Name'                               → simple key
  - 'SourceZones.Zone'                   → wrapper object, scalar or list
  - 'MemberInterface.Interface'          → same, for LAG members
  - 'HostList.Host'                      → group members
"""

from typing import Any


def walk_field_paths(data: Any, path: str) -> list[str]:
    """Walk a dotted field path and collect all leaf string values.

    Args:
        data: Root value to walk (dict, list or str).
        path: Dotted path; an empty path collects leaves of `data` itself.

    Returns:
        Non-empty string values found at the leaf positions, in document order.
    """
    results: list[str] = []
    parts = path.split('.') if path else []
    _collect(data, parts, 0, results)
    return results


def _collect(node: Any, parts: list[str], idx: int, results: list[str]) -> None:
    if node is None:
        return
    if isinstance(node, list):
        for item in node:
            if idx < len(parts) and not (isinstance(item, dict) and parts[idx] in item):
                _collect(item, parts, idx + 1, results)
            else:
                _collect(item, parts, idx, results)
        return
    if idx >= len(parts):
        if isinstance(node, str) and node:
            results.append(node)
        return
    if isinstance(node, dict):
        _collect(node.get(parts[idx]), parts, idx + 1, results)
