from typing import Any

from kubegraph.models import RelationCandidate, RelationKind
from kubegraph.paths import lookup_str
from kubegraph.rules.base import BaseRelationRule


class ServiceAccountRule(BaseRelationRule):
    """Emit a ``References`` edge to the ServiceAccount a pod spec runs as."""

    async def inspect(self, resource: dict[str, Any], accessor: Any) -> list[RelationCandidate]:
        pod_spec = self._pod_spec(resource)
        account = lookup_str(pod_spec, "serviceAccountName") or lookup_str(
            pod_spec, "serviceAccount"
        )
        if not account:
            return []

        return [
            self._candidate(
                "ServiceAccount",
                account,
                self._namespace(resource),
                RelationKind.REFERENCES,
                details="runs as ServiceAccount",
            )
        ]
