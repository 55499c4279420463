"""Tests for kubegraph.validator."""

from kubegraph.models import Graph, Node, Relation, RelationKind, ResourceRef
from kubegraph.validator import validate_graph
from tests.test_render import make_graph

SVC = ResourceRef(kind="Service", namespace="default", name="web")
POD = ResourceRef(kind="Pod", namespace="default", name="web-a")
ORPHAN = ResourceRef(kind="ConfigMap", namespace="default", name="orphan")


def _issue_types(result):
    return [issue["type"] for issue in result["issues"]]


def test_validate_clean_graph():
    """Test validation of a clean graph."""
    result = validate_graph(make_graph())

    assert result["valid"] is True
    assert result["node_count"] == 4
    assert result["edge_count"] == 4
    assert result["stub_count"] == 1
    assert result["issues"] == []


def test_validate_identity_mismatch():
    """Test nodes stored under the wrong identity."""
    graph = Graph(root=SVC, nodes={"wrong": Node(ref=SVC, content={})}, node_cap=10)

    result = validate_graph(graph)

    assert result["valid"] is False
    assert "identity_mismatch" in _issue_types(result)
    assert "missing_root" in _issue_types(result)


def test_validate_stub_problems():
    """Test stubs without an error and stubs with relations."""
    relation = Relation(source=POD, target=SVC, kind=RelationKind.REFERENCES, order=1)
    graph = Graph(
        root=SVC,
        nodes={
            SVC.node_id: Node(
                ref=SVC,
                content={},
                relations=(Relation(source=SVC, target=POD, kind=RelationKind.SELECTS, order=0),),
            ),
            POD.node_id: Node(ref=POD, relations=(relation,)),
        },
        node_cap=10,
    )

    types = _issue_types(validate_graph(graph))

    assert "stub_without_error" in types
    assert "expanded_stub" in types


def test_validate_dangling_and_duplicate_order():
    """Test relations to missing nodes and reused order numbers."""
    relations = (
        Relation(source=SVC, target=POD, kind=RelationKind.SELECTS, order=0),
        Relation(source=SVC, target=ORPHAN, kind=RelationKind.REFERENCES, order=0),
    )
    graph = Graph(
        root=SVC,
        nodes={
            SVC.node_id: Node(ref=SVC, content={}, relations=relations),
            POD.node_id: Node(ref=POD, content={}),
        },
        node_cap=10,
    )

    types = _issue_types(validate_graph(graph))

    assert "dangling_relation" in types
    assert "duplicate_order" in types


def test_validate_unreachable_and_over_cap():
    """Test nodes the root cannot reach and graphs above their cap."""
    graph = Graph(
        root=SVC,
        nodes={
            SVC.node_id: Node(ref=SVC, content={}),
            ORPHAN.node_id: Node(ref=ORPHAN, content={}),
        },
        node_cap=1,
    )

    result = validate_graph(graph)

    assert result["valid"] is False
    assert _issue_types(result) == ["unreachable", "over_cap"]
