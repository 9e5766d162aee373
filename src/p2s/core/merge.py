"""Patch-or-append merge of user containers into the operator-built ones."""

import copy

from p2s.pacts.types import InvalidSpecError

# Lists of objects merged item by item, keyed on this field
_MERGE_KEYS = {
    "env": "name",
    "ports": "name",
    "volumeMounts": "mountPath",
}


def _merge_keyed_list(base: list, patch: list, key: str) -> list:
    """Merge two lists of dicts on *key*; unkeyed patch items are appended."""
    result = [copy.deepcopy(item) for item in base]
    index = {item.get(key): i for i, item in enumerate(result)
             if isinstance(item, dict) and key in item}
    for item in patch:
        if isinstance(item, dict) and item.get(key) in index:
            target = result[index[item[key]]]
            _deep_merge(target, item)
        else:
            result.append(copy.deepcopy(item))
            if isinstance(item, dict) and key in item:
                index[item[key]] = len(result) - 1
    return result


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base. None values delete keys."""
    for key, val in overrides.items():
        if val is None:
            base.pop(key, None)
        elif isinstance(val, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], val)
        elif key in _MERGE_KEYS and isinstance(val, list) and isinstance(base.get(key), list):
            base[key] = _merge_keyed_list(base[key], val, _MERGE_KEYS[key])
        else:
            base[key] = copy.deepcopy(val)


def merge_containers(built: list[dict], additional: list[dict]) -> list[dict]:
    """Overlay *additional* containers onto *built* by name, appending new names.

    Only the fields present in a patch are changed. Operator-built
    containers keep their order; new containers follow in the given order.
    """
    result = [copy.deepcopy(c) for c in built]
    by_name = {c["name"]: c for c in result}
    for patch in additional:
        name = patch.get("name") if isinstance(patch, dict) else None
        if not name:
            raise InvalidSpecError("additional containers must have a name")
        if name in by_name:
            _deep_merge(by_name[name], patch)
        else:
            container = copy.deepcopy(patch)
            result.append(container)
            by_name[name] = container
    return result
