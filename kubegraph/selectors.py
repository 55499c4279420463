"""Label selector helpers.

Handles both selector shapes found in the wild: the flat ``{key: value}`` map
used by Services and the ``LabelSelector`` structure with ``matchLabels`` and
``matchExpressions`` used by workloads and policies.
"""

from typing import Any

_SET_OPERATORS = {"In": "in", "NotIn": "notin"}


def is_label_selector(selector: dict[str, Any]) -> bool:
    return "matchLabels" in selector or "matchExpressions" in selector


def selector_to_string(selector: dict[str, Any]) -> str:
    """
    Convert a selector to the Kubernetes label selector string syntax.

    Returns an empty string when the selector has no usable requirements.

    Example:
        >>> selector_to_string({"app": "web"})
        'app=web'
        >>> selector_to_string({"matchExpressions": [
        ...     {"key": "tier", "operator": "In", "values": ["a", "b"]}]})
        'tier in (a,b)'
    """
    if not isinstance(selector, dict):
        return ""

    if not is_label_selector(selector):
        return ",".join(
            f"{k}={v}" for k, v in sorted(selector.items()) if isinstance(v, str)
        )

    parts: list[str] = []
    match_labels = selector.get("matchLabels") or {}
    if isinstance(match_labels, dict):
        parts.extend(
            f"{k}={v}" for k, v in sorted(match_labels.items()) if isinstance(v, str)
        )

    for expr in selector.get("matchExpressions") or []:
        if not isinstance(expr, dict):
            continue
        key = expr.get("key")
        operator = expr.get("operator")
        values = [v for v in expr.get("values") or [] if isinstance(v, str)]
        if not key:
            continue
        if operator in _SET_OPERATORS and values:
            parts.append(f"{key} {_SET_OPERATORS[operator]} ({','.join(sorted(values))})")
        elif operator == "Exists":
            parts.append(key)
        elif operator == "DoesNotExist":
            parts.append(f"!{key}")

    return ",".join(parts)
