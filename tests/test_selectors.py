"""Tests for kubegraph.selectors."""

from kubegraph.selectors import is_label_selector, selector_to_string
from tests.conftest import matches


def test_flat_selector_to_string():
    """Test Service-style selectors are sorted by key."""
    assert selector_to_string({"tier": "frontend", "app": "web"}) == "app=web,tier=frontend"


def test_label_selector_to_string():
    """Test LabelSelector with matchLabels and matchExpressions."""
    selector = {
        "matchLabels": {"app": "web"},
        "matchExpressions": [
            {"key": "env", "operator": "In", "values": ["prod", "canary"]},
            {"key": "track", "operator": "NotIn", "values": ["legacy"]},
            {"key": "team", "operator": "Exists"},
            {"key": "deprecated", "operator": "DoesNotExist"},
        ],
    }

    assert is_label_selector(selector)
    assert selector_to_string(selector) == (
        "app=web,env in (canary,prod),track notin (legacy),team,!deprecated"
    )


def test_selector_to_string_skips_unusable_parts():
    """Test malformed requirements are ignored."""
    assert selector_to_string({}) == ""
    assert selector_to_string({"matchLabels": {}}) == ""
    assert selector_to_string({"matchExpressions": [{"operator": "Exists"}, "junk"]}) == ""
    assert selector_to_string({"app": 5}) == ""


def test_matches_equality():
    """Test equality and inequality requirements."""
    labels = {"app": "web", "tier": "frontend"}

    assert matches(labels, "app=web")
    assert matches(labels, "app==web,tier=frontend")
    assert not matches(labels, "app=api")
    assert matches(labels, "tier!=backend")
    assert not matches(labels, "tier!=frontend")


def test_matches_set_and_existence():
    """Test set-based and existence requirements."""
    labels = {"env": "prod", "team": "core"}

    assert matches(labels, "env in (canary,prod)")
    assert not matches(labels, "env notin (canary,prod)")
    assert matches(labels, "team,!deprecated")
    assert not matches(labels, "missing")
    assert not matches(labels, "!team")


def test_matches_empty_selector():
    """Test an empty selector matches everything, including unlabeled objects."""
    assert matches(None, "")
    assert matches({"app": "web"}, "")


def test_selector_string_round_trips_through_matching():
    """Test rendered selectors filter labels the way the selector intends."""
    selector = selector_to_string(
        {
            "matchLabels": {"app": "web"},
            "matchExpressions": [
                {"key": "env", "operator": "In", "values": ["prod", "canary"]},
                {"key": "legacy", "operator": "DoesNotExist"},
            ],
        }
    )

    assert matches({"app": "web", "env": "canary"}, selector)
    assert not matches({"app": "web", "env": "dev"}, selector)
    assert not matches({"app": "web", "env": "prod", "legacy": "true"}, selector)
