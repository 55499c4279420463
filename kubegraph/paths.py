"""Safe lookups over JSON-like object trees.

Relation rules inspect objects of many shapes, including custom resources.
Every lookup here returns ``None`` (or an empty collection) when a step of the
path is absent or has an unexpected type, so rules never need a schema.
"""

from typing import Any


def lookup(obj: Any, *path: str | int) -> Any:
    """
    Follow ``path`` through nested dicts and lists.

    Example:
        >>> lookup({"spec": {"template": {"spec": {}}}}, "spec", "template", "spec")
        {}
        >>> lookup({"spec": []}, "spec", "selector") is None
        True
    """
    current = obj
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def lookup_str(obj: Any, *path: str | int) -> str | None:
    value = lookup(obj, *path)
    if isinstance(value, str) and value:
        return value
    return None


def lookup_dict(obj: Any, *path: str | int) -> dict[str, Any]:
    value = lookup(obj, *path)
    return value if isinstance(value, dict) else {}


def lookup_list(obj: Any, *path: str | int) -> list[Any]:
    """Return the list at ``path``, or an empty list."""
    value = lookup(obj, *path)
    return value if isinstance(value, list) else []


def lookup_dicts(obj: Any, *path: str | int) -> list[dict[str, Any]]:
    return [item for item in lookup_list(obj, *path) if isinstance(item, dict)]
