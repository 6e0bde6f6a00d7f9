"""Build a NodeGraph from declarative node definitions."""

import logging
from collections.abc import Iterable

from waypoint.actions.registry import HandlerRegistry
from waypoint.config.models import NodeConfig
from waypoint.core.constants import START_NODE_ID
from waypoint.core.errors import GraphBuildError
from waypoint.dm.defaults import DEFAULT_NODES
from waypoint.dm.graph import NodeGraph
from waypoint.dm.nodes import Node

logger = logging.getLogger(__name__)


def node_from_config(config: NodeConfig, registry: HandlerRegistry | None = None) -> Node:
    """Resolve one definition, looking up its handler by name.

    Raises:
        GraphBuildError: If the handler name is not registered
    """
    handler = None
    if config.handler is not None:
        handler = (
            registry.get(config.handler, config.required_fields) if registry is not None else None
        )
        if handler is None:
            raise GraphBuildError(
                f"Node '{config.id}' references unknown handler '{config.handler}'"
            )
    return Node.create(
        id=config.id,
        description=config.description,
        prompt_template=config.prompt_template,
        required_fields=config.required_fields,
        next_node_ids=config.next_node_ids,
        handler=handler,
        handler_name=config.handler,
        reply_policy=config.reply_policy,
    )


def build_graph(
    definitions: Iterable[NodeConfig] | None = None,
    registry: HandlerRegistry | None = None,
    start_node_id: str = START_NODE_ID,
) -> NodeGraph:
    """Build and validate the node graph.

    Args:
        definitions: Node definitions; the default sales nodes when None
        registry: Handlers referenced by name from the definitions
        start_node_id: Node every conversation starts at

    Raises:
        GraphBuildError: On any structural defect
    """
    definitions = DEFAULT_NODES if definitions is None else tuple(definitions)
    graph = NodeGraph(
        [node_from_config(d, registry) for d in definitions], start_node_id=start_node_id
    )
    logger.info(f"Built {graph!r}")
    return graph
