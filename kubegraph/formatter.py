import json
import logging
from typing import Any, BinaryIO

from kubegraph.errors import RenderError
from kubegraph.models import Graph
from kubegraph.render import render_dot, render_tree

logger = logging.getLogger(__name__)

FORMAT_TYPES = ("tree", "dot", "json")


def format_graph_output(
    graph: Graph,
    format_type: str = "tree",
    include_metadata: bool = True,
) -> str:
    """
    Render a graph in the requested output format.

    Args:
        graph: Completed graph
        format_type: ``tree``, ``dot`` or ``json``
        include_metadata: Add counts and the truncation flag (json only)

    Returns:
        Rendered text

    Raises:
        ValueError: Unknown format type
    """
    if format_type == "tree":
        return render_tree(graph)
    if format_type == "dot":
        return render_dot(graph)
    if format_type == "json":
        return _format_json(graph, include_metadata)
    raise ValueError(f"Unknown format type: {format_type}. Expected one of {FORMAT_TYPES}")


def write_graph_output(graph: Graph, sink: BinaryIO, format_type: str = "tree") -> None:
    """
    Render a graph and write it to a byte stream as UTF-8.

    Raises:
        ValueError: Unknown format type
        RenderError: The sink could not be written
    """
    output = format_graph_output(graph, format_type)
    try:
        sink.write(output.encode("utf-8"))
        sink.flush()
    except (OSError, ValueError) as e:
        raise RenderError(f"failed to write {format_type} output: {e}") from e

    logger.debug(f"Wrote {len(output)} characters of {format_type} output")


def _format_json(graph: Graph, include_metadata: bool) -> str:
    data: dict[str, Any] = {
        "root": graph.root.node_id,
        "nodes": [
            {
                "id": node_id,
                "kind": node.ref.kind,
                "name": node.ref.name,
                "namespace": node.ref.namespace or None,
                "error": node.error,
            }
            for node_id, node in graph.nodes.items()
        ],
        "edges": [
            {
                "source": rel.source.node_id,
                "target": rel.target.node_id,
                "relationship_type": rel.kind.value,
                "details": rel.details,
            }
            for rel in graph.relations()
        ],
    }

    if include_metadata:
        data["metadata"] = {
            "node_count": len(graph.nodes),
            "edge_count": graph.relation_count,
            "stub_count": sum(1 for node in graph.nodes.values() if node.is_stub),
            "truncated": graph.truncated,
            "node_cap": graph.node_cap,
        }

    return json.dumps(data, indent=2) + "\n"
