"""Tests for building graphs from node definitions."""

import pytest

from waypoint.actions.registry import HandlerRegistry
from waypoint.config.models import NodeConfig
from waypoint.core.constants import ReplyPolicy
from waypoint.core.errors import GraphBuildError
from waypoint.dm.builder import build_graph, node_from_config
from waypoint.dm.defaults import DEFAULT_NODES, PRODUCT_DETAILS_NODE


def test_default_graph_shape(sales_graph):
    # Assert
    assert sales_graph.start_node_id == "welcome"
    assert set(sales_graph.node_ids) == {
        "welcome",
        "collect_name",
        "collect_email",
        "get_products",
        PRODUCT_DETAILS_NODE,
        "schedule_demo",
        "goodbye",
    }
    assert sales_graph.reachable_from("welcome") == set(sales_graph.node_ids)


def test_default_graph_handlers_and_policies(sales_graph):
    # Act
    demo = sales_graph.get("schedule_demo")
    qa = sales_graph.get(PRODUCT_DETAILS_NODE)

    # Assert
    assert demo.has_handler and demo.reply_policy is ReplyPolicy.REPLACE
    assert demo.required_fields == frozenset({"name", "email"})
    assert qa.has_handler and qa.reply_policy is ReplyPolicy.SUPPLEMENT
    assert not sales_graph.get("welcome").has_handler


def test_default_prompts(sales_graph):
    # Assert
    assert sales_graph.render_welcome() == (
        "Hello! I'm your sales assistant. May I know your name?"
    )
    assert sales_graph.get("collect_name").render_prompt({"name": "Alex"}) == (
        "Nice to meet you, Alex! What's your email address?"
    )


def test_unknown_handler_name_fails():
    # Arrange
    definition = NodeConfig(
        id="welcome", description="Welcome", prompt_template="Hi", handler="missing"
    )

    # Act & Assert
    with pytest.raises(GraphBuildError, match="unknown handler 'missing'"):
        node_from_config(definition, HandlerRegistry())


def test_default_nodes_need_registered_handlers():
    # Act & Assert
    with pytest.raises(GraphBuildError):
        build_graph(DEFAULT_NODES, HandlerRegistry())


def test_custom_definitions_and_start_node():
    # Arrange
    definitions = [
        NodeConfig(id="hello", description="Hello", prompt_template="Hey!", next_node_ids=["bye"]),
        NodeConfig(id="bye", description="Bye", prompt_template="Bye {name}"),
    ]

    # Act
    graph = build_graph(definitions, start_node_id="hello")

    # Assert
    assert graph.render_welcome() == "Hey!"
    assert graph.get("bye").next_node_ids == ()
