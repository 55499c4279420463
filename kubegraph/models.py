from enum import Enum
from typing import Any

import networkx as nx
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RelationKind(str, Enum):
    """Kinds of relationships between cluster objects."""

    OWNS = "Owns"
    SELECTS = "Selects"
    REFERENCES = "References"
    MOUNTS = "Mounts"
    ROUTES = "Routes"
    SCALE_TARGETS = "ScaleTargets"


class GroupVersionResource(BaseModel):
    """
    Fully qualified resource type as served by the API server.

    Carries the kind and scope of the type alongside the group/version/resource
    triple so callers never need a second discovery lookup.
    """

    model_config = ConfigDict(frozen=True)

    group: str = ""
    version: str
    resource: str
    kind: str
    namespaced: bool = True

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    def __str__(self) -> str:
        if self.group:
            return f"{self.resource}.{self.version}.{self.group}"
        return f"{self.resource}.{self.version}"


class APIResourceInfo(BaseModel):
    """One entry of the server's discovery document."""

    model_config = ConfigDict(frozen=True)

    group: str = ""
    version: str
    resource: str
    kind: str
    namespaced: bool = True
    singular_name: str = ""
    short_names: tuple[str, ...] = ()

    def to_gvr(self) -> GroupVersionResource:
        return GroupVersionResource(
            group=self.group,
            version=self.version,
            resource=self.resource,
            kind=self.kind,
            namespaced=self.namespaced,
        )


def split_api_version(api_version: str) -> tuple[str, str]:
    """Split ``apps/v1`` into ``("apps", "v1")`` and ``v1`` into ``("", "v1")``."""
    if "/" in api_version:
        group, version = api_version.split("/", 1)
        return group, version
    return "", api_version


class ResourceRef(BaseModel):
    """
    Identity of a cluster object.

    Deduplication uses ``node_id``: the API group, kind, namespace and name.
    An empty namespace means the object is cluster scoped.

    Example:
        >>> ref = ResourceRef(kind="Deployment", api_version="apps/v1",
        ...                   namespace="default", name="web")
        >>> ref.node_id
        'Deployment.apps:default:web'
    """

    model_config = ConfigDict(frozen=True)

    kind: str = Field(..., min_length=1)
    api_version: str = ""
    namespace: str = ""
    name: str = Field(..., min_length=1)
    uid: str | None = None

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        if not v[0].isupper():
            raise ValueError(f"Kind must start with uppercase letter: {v}")
        return v

    @property
    def group(self) -> str:
        return split_api_version(self.api_version)[0]

    @property
    def node_id(self) -> str:
        kind = f"{self.kind}.{self.group}" if self.group else self.kind
        return f"{kind}:{self.namespace or 'cluster'}:{self.name}"

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> "ResourceRef":
        metadata = obj.get("metadata") or {}
        return cls(
            kind=obj.get("kind", ""),
            api_version=obj.get("apiVersion", ""),
            namespace=metadata.get("namespace") or "",
            name=metadata.get("name", ""),
            uid=metadata.get("uid"),
        )

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.name} (ns: {self.namespace})"
        return f"{self.kind}/{self.name}"


class RelationCandidate(BaseModel):
    """A relation proposed by a rule, before the builder records it."""

    model_config = ConfigDict(frozen=True)

    target: ResourceRef
    kind: RelationKind
    details: str = ""
    error: str | None = None


class Relation(BaseModel):
    """A directed, recorded edge between two nodes of a graph."""

    model_config = ConfigDict(frozen=True)

    source: ResourceRef
    target: ResourceRef
    kind: RelationKind
    order: int = Field(..., ge=0)
    details: str = ""


class Node(BaseModel):
    """An object in the graph, or a stub for one that could not be read."""

    model_config = ConfigDict(frozen=True)

    ref: ResourceRef
    content: dict[str, Any] | None = None
    error: str | None = None
    relations: tuple[Relation, ...] = ()

    @property
    def is_stub(self) -> bool:
        return self.content is None


class Graph(BaseModel):
    """
    Result of one build.

    Nodes are keyed by ``ResourceRef.node_id`` in discovery order. A truncated
    graph stopped at ``node_cap`` nodes and is still valid.
    """

    model_config = ConfigDict(frozen=True)

    root: ResourceRef
    nodes: dict[str, Node]
    truncated: bool = False
    node_cap: int

    def get(self, ref: ResourceRef) -> Node | None:
        return self.nodes.get(ref.node_id)

    def relations(self) -> list[Relation]:
        return [rel for node in self.nodes.values() for rel in node.relations]

    @property
    def relation_count(self) -> int:
        return sum(len(node.relations) for node in self.nodes.values())

    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Convert to a NetworkX multigraph.

        Nodes carry ``kind``, ``name``, ``namespace``, ``stub`` and ``error``
        attributes. Each relation becomes one edge keyed by its kind.
        """
        graph = nx.MultiDiGraph()
        for node_id, node in self.nodes.items():
            graph.add_node(
                node_id,
                kind=node.ref.kind,
                name=node.ref.name,
                namespace=node.ref.namespace or None,
                stub=node.is_stub,
                error=node.error,
            )
        for rel in self.relations():
            graph.add_edge(
                rel.source.node_id,
                rel.target.node_id,
                key=rel.kind.value,
                relationship_type=rel.kind.value,
                order=rel.order,
                details=rel.details,
            )
        return graph


class BuildOptions(BaseModel):
    """Options controlling one graph build."""

    node_cap: int = Field(default=500, ge=1, le=10000)
    concurrency: int = Field(default=8, ge=1, le=64)
    request_timeout: float = Field(default=10.0, gt=0)
