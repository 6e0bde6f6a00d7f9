"""Tests for NodeGraph construction and validation."""

import logging

import pytest

from waypoint.core.errors import GraphBuildError
from waypoint.dm.graph import NodeGraph
from waypoint.dm.nodes import Node


def _node(node_id: str, *next_ids: str) -> Node:
    return Node.create(node_id, f"{node_id} node", f"Prompt of {node_id}", next_node_ids=next_ids)


def test_build_valid_graph():
    # Act
    graph = NodeGraph([_node("welcome", "collect_name"), _node("collect_name", "welcome")])

    # Assert
    assert len(graph) == 2
    assert "welcome" in graph
    assert graph.start_node_id == "welcome"
    assert graph.get("collect_name").id == "collect_name"
    assert graph.get("missing") is None
    assert graph.node_ids == ["welcome", "collect_name"]


def test_cycles_are_allowed():
    # Act
    graph = NodeGraph([_node("welcome", "a"), _node("a", "welcome")])

    # Assert
    assert graph.reachable_from("welcome") == {"welcome", "a"}


def test_duplicate_ids_fail():
    # Act & Assert
    with pytest.raises(GraphBuildError, match="Duplicate node ids: welcome"):
        NodeGraph([_node("welcome"), _node("welcome")])


def test_dangling_successor_fails():
    # Act & Assert
    with pytest.raises(GraphBuildError, match="welcome -> nowhere"):
        NodeGraph([_node("welcome", "nowhere")])


def test_missing_start_node_fails():
    # Act & Assert
    with pytest.raises(GraphBuildError, match="Start node 'welcome'"):
        NodeGraph([_node("collect_name")])


def test_empty_graph_fails():
    # Act & Assert
    with pytest.raises(GraphBuildError):
        NodeGraph([])


def test_unreachable_nodes_warn(caplog):
    # Act
    with caplog.at_level(logging.WARNING, logger="waypoint.dm.graph"):
        graph = NodeGraph([_node("welcome"), _node("orphan")])

    # Assert
    assert "orphan" in graph
    assert "orphan" in caplog.text


def test_candidates_follow_declared_order():
    # Arrange
    graph = NodeGraph([_node("welcome", "b", "a"), _node("a"), _node("b")])

    # Act
    candidates = graph.candidates("welcome")

    # Assert
    assert [node.id for node in candidates] == ["b", "a"]


def test_render_welcome_uses_empty_context():
    # Arrange
    graph = NodeGraph([Node.create("welcome", "Welcome", "Hello {name}!")])

    # Act & Assert
    assert graph.render_welcome() == "Hello {name}!"
    assert graph.render_welcome() == graph.render_welcome()


def test_graph_has_no_mutation_api():
    # Arrange
    graph = NodeGraph([_node("welcome")])

    # Act & Assert
    with pytest.raises(TypeError):
        graph._nodes["other"] = _node("other")
