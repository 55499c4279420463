"""Tests for kubegraph.formatter."""

import io
import json

import pytest

from kubegraph.errors import RenderError
from kubegraph.formatter import FORMAT_TYPES, format_graph_output, write_graph_output
from kubegraph.render import render_dot, render_tree
from tests.test_render import make_graph


def test_format_types():
    """Test the supported formats."""
    assert FORMAT_TYPES == ("tree", "dot", "json")


def test_format_tree_and_dot():
    """Test tree and dot dispatch to the renderers."""
    graph = make_graph()

    assert format_graph_output(graph) == render_tree(graph)
    assert format_graph_output(graph, "dot") == render_dot(graph)


def test_format_json():
    """Test JSON output."""
    data = json.loads(format_graph_output(make_graph(truncated=True), "json"))

    assert data["root"] == "Service:default:web"
    assert [node["id"] for node in data["nodes"]] == [
        "Service:default:web",
        "Pod:default:web-a",
        "PersistentVolume:cluster:pv-1",
        "Secret:default:tls",
    ]
    assert data["nodes"][2]["namespace"] is None
    assert data["nodes"][3]["error"] == 'secrets "tls" is forbidden'
    assert data["edges"][0] == {
        "source": "Service:default:web",
        "target": "Pod:default:web-a",
        "relationship_type": "Selects",
        "details": "",
    }
    assert data["metadata"] == {
        "node_count": 4,
        "edge_count": 4,
        "stub_count": 1,
        "truncated": True,
        "node_cap": 4,
    }


def test_format_json_without_metadata():
    """Test JSON output without metadata."""
    data = json.loads(format_graph_output(make_graph(), "json", include_metadata=False))

    assert "metadata" not in data


def test_format_unknown():
    """Test unknown formats."""
    with pytest.raises(ValueError, match="Unknown format type"):
        format_graph_output(make_graph(), "yaml")


def test_write_graph_output():
    """Test writing UTF-8 output to a byte stream."""
    sink = io.BytesIO()

    write_graph_output(make_graph(), sink, "dot")

    assert sink.getvalue().decode("utf-8") == render_dot(make_graph())


def test_write_graph_output_failing_sink():
    """Test that sink failures become RenderError."""

    class BrokenPipe(io.BytesIO):
        def write(self, data):
            raise BrokenPipeError("broken pipe")

    with pytest.raises(RenderError, match="broken pipe"):
        write_graph_output(make_graph(), BrokenPipe())


def test_write_graph_output_closed_sink():
    """Test writing to a closed stream."""
    sink = io.BytesIO()
    sink.close()

    with pytest.raises(RenderError):
        write_graph_output(make_graph(), sink, "tree")
