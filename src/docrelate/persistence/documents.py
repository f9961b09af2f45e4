"""Document matching, modification, and projection for in-memory storage.

Implements the subset of MongoDB query semantics relation hooks rely on:
- conditions: dotted paths, array fan-out, $eq $ne $in $nin $exists
  $gt $gte $lt $lte, plus top-level $and / $or
- modifiers: $set (with the positional "$"), $unset, $inc, $pull
- projections: inclusion with dotted paths, or exclusion
"""

import copy
from typing import Any

from docrelate.relations.errors import StorageError


def get_values(doc: Any, path: str) -> list[Any]:
    """All values reachable by a dotted path, fanning out through arrays."""
    return _walk(doc, path.split("."))


def _walk(value: Any, parts: list[str]) -> list[Any]:
    if not parts:
        return [value]
    head, rest = parts[0], parts[1:]
    if isinstance(value, dict):
        if head not in value:
            return []
        return _walk(value[head], rest)
    if isinstance(value, list):
        if head.isdigit():
            index = int(head)
            return _walk(value[index], rest) if index < len(value) else []
        found: list[Any] = []
        for item in value:
            found.extend(_walk(item, parts))
        return found
    return []


def _compare(candidates: list[Any], expected: Any, op) -> bool:
    for candidate in candidates:
        try:
            if op(candidate, expected):
                return True
        except TypeError:
            continue
    return False


def match_value(values: list[Any], expected: Any) -> bool:
    """Check the values found at a path against one condition value."""
    candidates = list(values)
    for value in values:
        if isinstance(value, list):
            candidates.extend(value)

    if not _is_operator_dict(expected):
        return any(candidate == expected for candidate in candidates)

    for op, operand in expected.items():
        if op == "$eq":
            ok = any(candidate == operand for candidate in candidates)
        elif op == "$ne":
            ok = not any(candidate == operand for candidate in candidates)
        elif op == "$in":
            ok = any(candidate in operand for candidate in candidates)
        elif op == "$nin":
            ok = not any(candidate in operand for candidate in candidates)
        elif op == "$exists":
            ok = bool(values) == bool(operand)
        elif op == "$gt":
            ok = _compare(candidates, operand, lambda a, b: a > b)
        elif op == "$gte":
            ok = _compare(candidates, operand, lambda a, b: a >= b)
        elif op == "$lt":
            ok = _compare(candidates, operand, lambda a, b: a < b)
        elif op == "$lte":
            ok = _compare(candidates, operand, lambda a, b: a <= b)
        else:
            raise StorageError(f"Unsupported query operator: {op}")
        if not ok:
            return False
    return True


def matches(doc: dict[str, Any], condition: dict[str, Any] | None) -> bool:
    """Check whether a document satisfies a query condition."""
    for key, expected in (condition or {}).items():
        if key == "$and":
            if not all(matches(doc, sub) for sub in expected):
                return False
        elif key == "$or":
            if not any(matches(doc, sub) for sub in expected):
                return False
        elif key.startswith("$"):
            raise StorageError(f"Unsupported query operator: {key}")
        elif not match_value(get_values(doc, key), expected):
            return False
    return True


def _is_operator_dict(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and bool(value)
        and all(isinstance(k, str) and k.startswith("$") for k in value)
    )


# ---------------------------------------------------------------------------
# Modification
# ---------------------------------------------------------------------------


def set_path(doc: dict[str, Any], path: str, value: Any) -> None:
    """Set a dotted path, creating intermediate documents as needed."""
    parts = path.split(".")
    target: Any = doc
    for part in parts[:-1]:
        if isinstance(target, list):
            target = target[int(part)]
            continue
        if not isinstance(target.get(part), (dict, list)):
            target[part] = {}
        target = target[part]

    last = parts[-1]
    if isinstance(target, list):
        target[int(last)] = value
    else:
        target[last] = value


def unset_path(doc: dict[str, Any], path: str) -> None:
    """Remove a dotted path if present."""
    parts = path.split(".")
    target: Any = doc
    for part in parts[:-1]:
        if isinstance(target, list):
            index = int(part)
            if index >= len(target):
                return
            target = target[index]
        elif isinstance(target, dict) and part in target:
            target = target[part]
        else:
            return
    if isinstance(target, dict):
        target.pop(parts[-1], None)


def _get_single(doc: dict[str, Any], path: str) -> Any:
    target: Any = doc
    for part in path.split("."):
        if isinstance(target, list) and part.isdigit():
            index = int(part)
            target = target[index] if index < len(target) else None
        elif isinstance(target, dict):
            target = target.get(part)
        else:
            return None
    return target


def resolve_positional(doc: dict[str, Any], path: str, condition: dict[str, Any]) -> str:
    """Replace a positional "$" segment with the index the query matched."""
    if ".$" not in path:
        return path

    prefix, _, suffix = path.partition(".$")
    array = _get_single(doc, prefix)
    if isinstance(array, list):
        element_conditions = {
            key[len(prefix) + 1:]: value
            for key, value in condition.items()
            if key.startswith(prefix + ".")
        }
        for index, element in enumerate(array):
            if prefix in condition and not match_value([element], condition[prefix]):
                continue
            if element_conditions and not (
                isinstance(element, dict) and matches(element, element_conditions)
            ):
                continue
            if prefix in condition or element_conditions:
                return f"{prefix}.{index}{suffix}"

    raise StorageError(
        "The positional operator did not find the match needed from the query "
        f"for path `{path}`"
    )


def _pull_matches(element: Any, criteria: Any) -> bool:
    if _is_operator_dict(criteria):
        return match_value([element], criteria)
    if isinstance(criteria, dict):
        return isinstance(element, dict) and matches(element, criteria)
    return element == criteria


def apply_modifier(
    doc: dict[str, Any],
    modifier: dict[str, Any],
    condition: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return a modified copy of doc. The input document is left untouched.

    Raises:
        StorageError: Unsupported operator, or a path or value the
            operator cannot be applied to
    """
    try:
        return _apply_operators(copy.deepcopy(doc), modifier, condition or {})
    except (AttributeError, TypeError, ValueError, IndexError) as e:
        raise StorageError(f"Cannot apply update {modifier!r}: {e}") from e


def _apply_operators(
    doc: dict[str, Any], modifier: dict[str, Any], condition: dict[str, Any]
) -> dict[str, Any]:
    for op, updates in modifier.items():
        if op == "$set":
            for path, value in updates.items():
                path = resolve_positional(doc, path, condition)
                set_path(doc, path, copy.deepcopy(value))
        elif op == "$unset":
            for path in updates:
                unset_path(doc, resolve_positional(doc, path, condition))
        elif op == "$inc":
            for path, amount in updates.items():
                path = resolve_positional(doc, path, condition)
                current = _get_single(doc, path) or 0
                set_path(doc, path, current + amount)
        elif op == "$pull":
            for path, criteria in updates.items():
                array = _get_single(doc, path)
                if isinstance(array, list):
                    set_path(
                        doc,
                        path,
                        [item for item in array if not _pull_matches(item, criteria)],
                    )
        else:
            raise StorageError(f"Unsupported update operator: {op}")
    return doc


def seed_from_condition(condition: dict[str, Any]) -> dict[str, Any]:
    """Build the base document for an upsert insert from equality fields."""
    doc: dict[str, Any] = {}
    for key, value in condition.items():
        if key.startswith("$") or _is_operator_dict(value):
            continue
        set_path(doc, key, copy.deepcopy(value))
    return doc


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def project(doc: dict[str, Any], projection: dict[str, Any] | None) -> dict[str, Any]:
    """Return a projected deep copy of a document."""
    if not projection:
        return copy.deepcopy(doc)

    included = [path for path, flag in projection.items() if flag]
    excluded = [path for path, flag in projection.items() if not flag]

    if not included:
        result = copy.deepcopy(doc)
        for path in excluded:
            unset_path(result, path)
        return result

    result: dict[str, Any] = {}
    if "_id" in doc and "_id" not in excluded:
        result["_id"] = copy.deepcopy(doc["_id"])
    for path in included:
        _include(doc, result, path.split("."))
    return result


def _include(source: dict[str, Any], target: dict[str, Any], parts: list[str]) -> None:
    head, rest = parts[0], parts[1:]
    if head not in source:
        return
    value = source[head]
    if not rest:
        target[head] = copy.deepcopy(value)
    elif isinstance(value, dict):
        _include(value, target.setdefault(head, {}), rest)
    elif isinstance(value, list):
        elements = [item for item in value if isinstance(item, dict)]
        projected = target.setdefault(head, [{} for _ in elements])
        for item, item_target in zip(elements, projected):
            _include(item, item_target, rest)
