"""Content-aware comparison of parsed field values.

Arrays are never compared index by index. Primitive arrays are compared
as sets; arrays of objects are aligned in three passes:

  1. exact      - items with equal signatures are paired as unchanged,
                  wherever they sit in either array
  2. positional - leftover items at the same index are paired as
                  modified when they share at least `min_shared_keys`
                  keys (a known heuristic: unrelated records that happen
                  to share a field name are paired too)
  3. residual   - anything still unpaired is removed (old) or added (new)
"""

from typing import Any

from sophos_parser.domain.enums import ChangeType
from sophos_parser.domain.models import DiffOptions, ValueDiff
from sophos_parser.signature import SignatureService


def is_primitive(value: Any) -> bool:
    return not isinstance(value, (dict, list))


def deep_compare_values(old: Any, new: Any, options: DiffOptions | None = None) -> ValueDiff:
    """Compare two parsed values recursively.

    Args:
        old: Value from the old snapshot, None when absent.
        new: Value from the new snapshot, None when absent.
        options: Alignment options (default DiffOptions()).

    Returns:
        ValueDiff whose `change` is UNCHANGED only if the values are
        equivalent under order-independent comparison.
    """
    options = options or DiffOptions()

    if old is None and new is None:
        return ValueDiff(ChangeType.UNCHANGED)
    if old is None:
        return ValueDiff(ChangeType.ADDED, new_value=new)
    if new is None:
        return ValueDiff(ChangeType.REMOVED, old_value=old)

    if isinstance(old, list) and isinstance(new, list):
        if all(is_primitive(v) for v in old) and all(is_primitive(v) for v in new):
            return _compare_primitive_arrays(old, new)
        return _compare_object_arrays(old, new, options)

    if isinstance(old, dict) and isinstance(new, dict):
        return _compare_objects(old, new, options)

    if is_primitive(old) and is_primitive(new):
        change = ChangeType.UNCHANGED if str(old) == str(new) else ChangeType.MODIFIED
        return ValueDiff(change, old_value=old, new_value=new)

    # Shape changed, e.g. a single wrapped item became a list
    return ValueDiff(ChangeType.MODIFIED, old_value=old, new_value=new)


def _compare_primitive_arrays(old: list, new: list) -> ValueDiff:
    old_keys = {str(v) for v in old}
    new_keys = {str(v) for v in new}

    result = ValueDiff(ChangeType.UNCHANGED, old_value=old, new_value=new)
    seen: set[str] = set()
    for value in old:
        key = str(value)
        if key in seen:
            continue
        seen.add(key)
        if key in new_keys:
            result.unchanged.append(value)
        else:
            result.removed.append(value)
    for value in new:
        key = str(value)
        if key in seen:
            continue
        seen.add(key)
        result.added.append(value)

    if result.added or result.removed:
        result.change = ChangeType.MODIFIED
    return result


def _shared_key_count(old: Any, new: Any) -> int:
    if isinstance(old, dict) and isinstance(new, dict):
        return len(old.keys() & new.keys())
    return 0


def _compare_object_arrays(old: list, new: list, options: DiffOptions) -> ValueDiff:
    result = ValueDiff(ChangeType.UNCHANGED, old_value=old, new_value=new)
    old_matched = [False] * len(old)
    new_matched = [False] * len(new)

    # Pass 1: exact signature buckets
    buckets: dict[str, list[int]] = {}
    for j, item in enumerate(new):
        buckets.setdefault(SignatureService.signature(item), []).append(j)
    for i, item in enumerate(old):
        candidates = buckets.get(SignatureService.signature(item))
        if candidates:
            j = candidates.pop(0)
            old_matched[i] = new_matched[j] = True
            result.unchanged.append(item)

    # Pass 2: same-index pairs of the same kind of record
    for i in range(min(len(old), len(new))):
        if old_matched[i] or new_matched[i]:
            continue
        old_item, new_item = old[i], new[i]
        both_lists = isinstance(old_item, list) and isinstance(new_item, list)
        if not both_lists and _shared_key_count(old_item, new_item) < max(1, options.min_shared_keys):
            continue
        old_matched[i] = new_matched[i] = True
        item_diff = deep_compare_values(old_item, new_item, options)
        if item_diff.is_changed:
            result.modified.append(item_diff)
        else:
            result.unchanged.append(old_item)

    # Pass 3: residual
    result.removed.extend(item for i, item in enumerate(old) if not old_matched[i])
    result.added.extend(item for j, item in enumerate(new) if not new_matched[j])

    if result.added or result.removed or result.modified:
        result.change = ChangeType.MODIFIED
    return result


def _compare_objects(old: dict, new: dict, options: DiffOptions) -> ValueDiff:
    result = ValueDiff(ChangeType.UNCHANGED, old_value=old, new_value=new)
    keys = list(old) + [k for k in new if k not in old]
    for key in keys:
        child = deep_compare_values(old.get(key), new.get(key), options)
        result.children[key] = child
        if child.is_changed:
            result.change = ChangeType.MODIFIED
    return result
