"""
kubegraph: discover and render the relationships of a Kubernetes object.

Example:
    >>> import asyncio
    >>> from kubegraph import GraphBuilder, KubernetesAdapter, render_tree
    >>> graph = asyncio.run(GraphBuilder(KubernetesAdapter()).build("svc", "default", "web"))
    >>> print(render_tree(graph))
"""

from kubegraph.accessor import ResourceAccessor
from kubegraph.adapters import KubernetesAdapter
from kubegraph.builder import GraphBuilder
from kubegraph.config import load_options
from kubegraph.errors import (
    AccessError,
    AccessTimeoutError,
    AmbiguousKindError,
    BuildCancelledError,
    KindNotFoundError,
    KubeGraphError,
    NotFoundError,
    RenderError,
    RootNotFoundError,
)
from kubegraph.formatter import format_graph_output, write_graph_output
from kubegraph.models import (
    APIResourceInfo,
    BuildOptions,
    Graph,
    GroupVersionResource,
    Node,
    Relation,
    RelationCandidate,
    RelationKind,
    ResourceRef,
)
from kubegraph.protocols import ClusterClientProtocol, RelationRuleProtocol
from kubegraph.render import render_dot, render_tree
from kubegraph.rules import default_rules
from kubegraph.validator import validate_graph

__all__ = [
    "APIResourceInfo",
    "AccessError",
    "AccessTimeoutError",
    "AmbiguousKindError",
    "BuildCancelledError",
    "BuildOptions",
    "ClusterClientProtocol",
    "Graph",
    "GraphBuilder",
    "GroupVersionResource",
    "KindNotFoundError",
    "KubeGraphError",
    "KubernetesAdapter",
    "Node",
    "NotFoundError",
    "Relation",
    "RelationCandidate",
    "RelationKind",
    "RelationRuleProtocol",
    "RenderError",
    "ResourceAccessor",
    "ResourceRef",
    "RootNotFoundError",
    "default_rules",
    "format_graph_output",
    "load_options",
    "render_dot",
    "render_tree",
    "validate_graph",
    "write_graph_output",
]
