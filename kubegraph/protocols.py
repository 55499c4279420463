from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from kubegraph.models import APIResourceInfo, GroupVersionResource, RelationCandidate

if TYPE_CHECKING:
    from kubegraph.accessor import ResourceAccessor


@runtime_checkable
class ClusterClientProtocol(Protocol):
    """
    Low-level, pre-authenticated read access to a cluster.

    Implementations raise ``NotFoundError`` for missing objects and
    ``AccessError`` for permission, transport or server failures.
    """

    async def discover_resources(self) -> list[APIResourceInfo]:
        """Return the preferred version of every listable resource type."""
        ...

    async def get(self, gvr: GroupVersionResource, namespace: str, name: str) -> dict[str, Any]:
        ...

    async def list(
        self,
        gvr: GroupVersionResource,
        namespace: str,
        label_selector: str = "",
    ) -> list[dict[str, Any]]:
        ...


@runtime_checkable
class RelationRuleProtocol(Protocol):
    """
    A stateless inspection that recognises one family of relationships.

    ``inspect`` never raises. Missing or mismatched fields produce no
    candidates, and accessor failures produce candidates that carry an error.
    """

    @property
    def name(self) -> str:
        ...

    async def inspect(
        self, resource: dict[str, Any], accessor: ResourceAccessor
    ) -> list[RelationCandidate]:
        ...
