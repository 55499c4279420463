from kubegraph.models import Graph

TRUNCATED_NOTICE = "(truncated: node cap of {cap} reached, graph is incomplete)"


def render_tree(graph: Graph, indent: str = "  ") -> str:
    """
    Render a graph as an indented tree.

    Walks depth-first from the root along each node's relations. An object is
    expanded the first time the walk reaches it; every later encounter prints
    one ``(see above)`` line and does not descend, which keeps the output
    finite on cyclic graphs. Stub nodes show the error that made them stubs.

    Example output::

        Service/web
          Pod/web-a
            ReplicaSet/web-7f9c
              Deployment/web
            ConfigMap/web-config
          Pod/web-b
            ReplicaSet/web-7f9c (see above)
            ConfigMap/web-config (see above)
    """
    lines: list[str] = []
    shown: set[str] = set()
    stack: list[tuple[str, int]] = [(graph.root.node_id, 0)]

    while stack:
        node_id, depth = stack.pop()
        node = graph.nodes[node_id]
        line = f"{indent * depth}{node.ref.kind}/{node.ref.name}"

        if node_id in shown:
            lines.append(f"{line} (see above)")
            continue
        shown.add(node_id)

        if node.is_stub:
            line = f"{line} [error: {node.error}]"
        lines.append(line)

        stack.extend((rel.target.node_id, depth + 1) for rel in reversed(node.relations))

    if graph.truncated:
        lines.append(TRUNCATED_NOTICE.format(cap=graph.node_cap))

    return "\n".join(lines) + "\n"
