import logging
from typing import Any

from kubegraph.models import RelationCandidate, RelationKind
from kubegraph.paths import lookup_dicts
from kubegraph.rules.base import BaseRelationRule

logger = logging.getLogger(__name__)


class OwnerReferenceRule(BaseRelationRule):
    """
    Emit ``Owns`` edges from an object to each of its declared owners.

    Owners live in the object's namespace, or are cluster scoped; the accessor
    drops the namespace for cluster-scoped owner kinds.
    """

    async def inspect(self, resource: dict[str, Any], accessor: Any) -> list[RelationCandidate]:
        candidates: list[RelationCandidate] = []
        namespace = self._namespace(resource)

        for owner_ref in lookup_dicts(resource, "metadata", "ownerReferences"):
            owner_kind = owner_ref.get("kind")
            owner_name = owner_ref.get("name")
            if not isinstance(owner_kind, str) or not isinstance(owner_name, str):
                continue
            if not owner_kind or not owner_name or not owner_kind[0].isupper():
                continue

            controller = " (controller)" if owner_ref.get("controller") else ""
            candidates.append(
                self._candidate(
                    owner_kind,
                    owner_name,
                    namespace,
                    RelationKind.OWNS,
                    api_version=owner_ref.get("apiVersion") or "",
                    details=f"owned by {owner_kind}{controller}",
                    uid=owner_ref.get("uid"),
                )
            )

        return candidates
