from typing import Any

from kubegraph.models import RelationCandidate, RelationKind
from kubegraph.paths import lookup_dict, lookup_str
from kubegraph.rules.base import BaseRelationRule


class ScaleTargetRule(BaseRelationRule):
    """
    Emit a ``ScaleTargets`` edge from an autoscaler to the workload it scales.

    Reads ``spec.scaleTargetRef`` (HorizontalPodAutoscaler, KEDA ScaledObject)
    or ``spec.targetRef`` (VerticalPodAutoscaler). A reference without an API
    version is assumed to point into ``apps/v1``.
    """

    default_api_version = "apps/v1"

    async def inspect(self, resource: dict[str, Any], accessor: Any) -> list[RelationCandidate]:
        target_ref = lookup_dict(resource, "spec", "scaleTargetRef") or lookup_dict(
            resource, "spec", "targetRef"
        )
        target_kind = lookup_str(target_ref, "kind")
        target_name = lookup_str(target_ref, "name")
        if not target_kind or not target_name or not target_kind[0].isupper():
            return []

        return [
            self._candidate(
                target_kind,
                target_name,
                self._namespace(resource),
                RelationKind.SCALE_TARGETS,
                api_version=lookup_str(target_ref, "apiVersion") or self.default_api_version,
                details=f"scales {target_kind}",
            )
        ]
