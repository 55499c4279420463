"""Graphviz DOT rendering."""

import pydot

from kubegraph.models import Graph, Node

TRUNCATED_NOTICE = "// truncated: node cap of {cap} reached, graph is incomplete"


def _quoted_id(node_id: str) -> str:
    # an unquoted ID containing ':' is read as node:port
    return f'"{node_id}"'


def _node_label(node: Node) -> str:
    label = f"{node.ref.kind}/{node.ref.name}"
    if node.ref.namespace:
        label = f"{label}\\n({node.ref.namespace})"
    return label


def render_dot(graph: Graph, name: str = "kubegraph") -> str:
    """
    Render a graph as a Graphviz ``digraph``.

    One node statement per node, then one edge statement per relation, both
    in insertion order, so output is byte-stable for identical graphs. Node
    IDs are the namespace-qualified node identities. Stub nodes are drawn
    dashed red with their error as tooltip. A truncated graph gets a
    trailing comment saying so.

    Example:
        >>> print(render_dot(graph))  # doctest: +SKIP
        digraph kubegraph {
        node [shape=box];
        "Service:default:web" [label="Service/web\\n(default)"];
        ...
        "Service:default:web" -> "Pod:default:web-a" [label=Selects];
        }
    """
    dot = pydot.Dot(name, graph_type="digraph")
    dot.set_node_defaults(shape="box")

    for node_id, node in graph.nodes.items():
        attrs = {"label": _node_label(node)}
        if node.is_stub:
            attrs.update(
                style="dashed",
                color="red",
                tooltip=(node.error or "").replace("\\", "\\\\"),
            )
        dot.add_node(pydot.Node(_quoted_id(node_id), **attrs))

    for rel in graph.relations():
        dot.add_edge(
            pydot.Edge(
                _quoted_id(rel.source.node_id),
                _quoted_id(rel.target.node_id),
                label=rel.kind.value,
            )
        )

    text = dot.to_string()
    if graph.truncated:
        text += TRUNCATED_NOTICE.format(cap=graph.node_cap) + "\n"
    return text
