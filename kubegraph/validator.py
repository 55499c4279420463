import logging
from typing import Any

import networkx as nx

from kubegraph.models import Graph

logger = logging.getLogger(__name__)


def validate_graph(graph: Graph) -> dict[str, Any]:
    """
    Check the structural invariants of a built graph.

    Checks:
    - every node is keyed by its own identity (no duplicates)
    - every relation starts and ends at a node of the graph
    - relation order numbers are unique
    - every node is reachable from the root

    Returns:
        Dictionary with ``valid`` (bool), node/edge/stub counts and
        ``issues`` (list of dicts with ``type`` and ``message``)

    Example:
        >>> result = validate_graph(graph)
        >>> if not result["valid"]:
        ...     for issue in result["issues"]:
        ...         print(issue["message"])
    """
    issues: list[dict[str, str]] = []

    for node_id, node in graph.nodes.items():
        if node.ref.node_id != node_id:
            issues.append(
                {
                    "type": "identity_mismatch",
                    "message": f"Node {node.ref} stored under {node_id}",
                }
            )
        if node.is_stub and not node.error:
            issues.append({"type": "stub_without_error", "message": f"Stub {node_id} has no error"})
        if node.is_stub and node.relations:
            issues.append(
                {"type": "expanded_stub", "message": f"Stub {node_id} has outgoing relations"}
            )

    orders: set[int] = set()
    for rel in graph.relations():
        for end in (rel.source, rel.target):
            if end.node_id not in graph.nodes:
                issues.append(
                    {
                        "type": "dangling_relation",
                        "message": f"Relation {rel.kind.value} references missing node {end.node_id}",
                    }
                )
        if rel.order in orders:
            issues.append(
                {"type": "duplicate_order", "message": f"Relation order {rel.order} used twice"}
            )
        orders.add(rel.order)

    if graph.root.node_id not in graph.nodes:
        issues.append({"type": "missing_root", "message": f"Root {graph.root} is not in the graph"})
    else:
        nx_graph = graph.to_networkx()
        reachable = nx.descendants(nx_graph, graph.root.node_id) | {graph.root.node_id}
        for node_id in graph.nodes:
            if node_id not in reachable:
                issues.append(
                    {"type": "unreachable", "message": f"Node {node_id} is not reachable from root"}
                )

    if len(graph.nodes) > graph.node_cap:
        issues.append(
            {
                "type": "over_cap",
                "message": f"{len(graph.nodes)} nodes exceed the cap of {graph.node_cap}",
            }
        )

    if issues:
        logger.debug(f"Graph validation found {len(issues)} issues")

    return {
        "valid": not issues,
        "node_count": len(graph.nodes),
        "edge_count": graph.relation_count,
        "stub_count": sum(1 for node in graph.nodes.values() if node.is_stub),
        "issues": issues,
    }
