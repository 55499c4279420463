import logging
from abc import ABC, abstractmethod
from typing import Any

from kubegraph.models import RelationCandidate, RelationKind, ResourceRef
from kubegraph.paths import lookup_dict, lookup_str

logger = logging.getLogger(__name__)

# pod specs sit at different depths depending on the owning kind
POD_SPEC_PATHS: tuple[tuple[str, ...], ...] = (
    ("spec", "jobTemplate", "spec", "template", "spec"),
    ("spec", "template", "spec"),
    ("spec",),
)


class BaseRelationRule(ABC):
    """
    Shared helpers for relation rules.

    Subclasses implement ``inspect``. Helpers here only read the object and
    build candidates; they never call the cluster.
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    async def inspect(self, resource: dict[str, Any], accessor: Any) -> list[RelationCandidate]:
        """Return relation candidates for one object, in a stable order."""

    def _namespace(self, resource: dict[str, Any]) -> str:
        return lookup_str(resource, "metadata", "namespace") or ""

    def _pod_spec(self, resource: dict[str, Any]) -> dict[str, Any]:
        """
        Return the pod spec embedded in a resource, or an empty dict.

        A plain ``spec`` only counts when it looks like a pod spec.
        """
        for path in POD_SPEC_PATHS:
            spec = lookup_dict(resource, *path)
            if "containers" in spec or "volumes" in spec:
                return spec
        return {}

    def _candidate(
        self,
        kind: str,
        name: str,
        namespace: str,
        relation: RelationKind,
        api_version: str = "v1",
        details: str = "",
        uid: str | None = None,
    ) -> RelationCandidate:
        return RelationCandidate(
            target=ResourceRef(
                kind=kind,
                api_version=api_version,
                namespace=namespace,
                name=name,
                uid=uid,
            ),
            kind=relation,
            details=details,
        )
