import logging
from typing import Any

from kubegraph.errors import KubeGraphError
from kubegraph.models import RelationCandidate, RelationKind, ResourceRef
from kubegraph.paths import lookup_dict, lookup_str
from kubegraph.rules.base import BaseRelationRule
from kubegraph.selectors import is_label_selector, selector_to_string

logger = logging.getLogger(__name__)


class LabelSelectorRule(BaseRelationRule):
    """
    Emit ``Selects`` edges from a selector-bearing object to matching Pods.

    Recognises ``spec.selector`` as either a flat label map (Services) or a
    ``LabelSelector`` (workloads, Jobs, PodDisruptionBudgets), and
    ``spec.podSelector`` (NetworkPolicies). Empty selectors select nothing
    here, even where the API treats them as "all pods", and cluster-scoped
    objects select nothing since they have no namespace to search.
    """

    target_kind = "Pod"

    async def inspect(self, resource: dict[str, Any], accessor: Any) -> list[RelationCandidate]:
        selector = self._selector_string(resource)
        if not selector:
            return []

        namespace = self._namespace(resource)
        if not namespace:
            logger.debug(f"Ignoring selector '{selector}' on cluster-scoped object")
            return []

        try:
            gvr = await accessor.resolve_kind(self.target_kind)
            matches = await accessor.list(gvr, namespace, selector)
        except KubeGraphError as e:
            logger.debug(f"Listing {self.target_kind} for selector '{selector}' failed: {e}")
            return [
                RelationCandidate(
                    target=ResourceRef(
                        kind=self.target_kind,
                        api_version="v1",
                        namespace=namespace,
                        name=f"*[{selector}]",
                    ),
                    kind=RelationKind.SELECTS,
                    details=f"selects pods with labels: {selector}",
                    error=str(e),
                )
            ]

        candidates: list[RelationCandidate] = []
        for match in sorted(matches, key=lambda obj: lookup_str(obj, "metadata", "name") or ""):
            name = lookup_str(match, "metadata", "name")
            if not name:
                continue
            candidates.append(
                self._candidate(
                    self.target_kind,
                    name,
                    lookup_str(match, "metadata", "namespace") or namespace,
                    RelationKind.SELECTS,
                    api_version=gvr.api_version,
                    details=f"selects pods with labels: {selector}",
                    uid=lookup_str(match, "metadata", "uid"),
                )
            )

        return candidates

    def _selector_string(self, resource: dict[str, Any]) -> str:
        selector = lookup_dict(resource, "spec", "selector")
        if selector:
            # a Service selector is a flat map of strings
            if is_label_selector(selector) or all(isinstance(v, str) for v in selector.values()):
                return selector_to_string(selector)
            return ""

        pod_selector = lookup_dict(resource, "spec", "podSelector")
        if pod_selector:
            return selector_to_string(pod_selector)
        return ""
