"""Node graph: immutable registry of dialogue nodes.

Built once from a fixed set of definitions and validated up front. Dangling
successor ids, duplicate ids and a missing start node are configuration
defects and fail the build; nothing is repaired at runtime.
"""

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from types import MappingProxyType

from waypoint.core.constants import START_NODE_ID
from waypoint.core.errors import GraphBuildError
from waypoint.dm.nodes import Node

logger = logging.getLogger(__name__)


class NodeGraph:
    """Read-only mapping of node id to Node.

    Safe to share across concurrent turns: no mutation API exists after
    construction.
    """

    def __init__(self, nodes: Iterable[Node], start_node_id: str = START_NODE_ID) -> None:
        registry: dict[str, Node] = {}
        duplicates: list[str] = []
        for node in nodes:
            if node.id in registry:
                duplicates.append(node.id)
            registry[node.id] = node

        if duplicates:
            raise GraphBuildError(f"Duplicate node ids: {', '.join(sorted(set(duplicates)))}")
        if not registry:
            raise GraphBuildError("Node graph must contain at least one node")
        if start_node_id not in registry:
            raise GraphBuildError(f"Start node '{start_node_id}' is not defined")

        self._nodes = MappingProxyType(registry)
        self._start_node_id = start_node_id
        self._validate_edges()

    def _validate_edges(self) -> None:
        dangling = [
            f"{node.id} -> {target}"
            for node in self._nodes.values()
            for target in node.next_node_ids
            if target not in self._nodes
        ]
        if dangling:
            raise GraphBuildError(f"Unknown successor node ids: {', '.join(dangling)}")

        unreachable = set(self._nodes) - self.reachable_from(self._start_node_id)
        if unreachable:
            # Warning only: out-of-candidate transitions can still land here
            logger.warning(
                f"Nodes not reachable from '{self._start_node_id}' via declared edges: "
                f"{', '.join(sorted(unreachable))}"
            )

    @property
    def start_node_id(self) -> str:
        return self._start_node_id

    @property
    def start_node(self) -> Node:
        return self._nodes[self._start_node_id]

    @property
    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def get(self, node_id: str) -> Node | None:
        """Look up a node. Absence is a normal outcome, not an error."""
        return self._nodes.get(node_id)

    def candidates(self, node_id: str) -> list[Node]:
        """Declared successors of ``node_id``, in declaration order."""
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._nodes[target] for target in node.next_node_ids]

    def reachable_from(self, node_id: str) -> set[str]:
        """Ids reachable from ``node_id`` following declared edges (inclusive)."""
        if node_id not in self._nodes:
            return set()
        seen = {node_id}
        queue = deque([node_id])
        while queue:
            current = self._nodes[queue.popleft()]
            for target in current.next_node_ids:
                if target not in seen:
                    seen.add(target)
                    queue.append(target)
        return seen

    def render_welcome(self) -> str:
        """Entry prompt of the start node rendered against an empty context."""
        return self.start_node.render_prompt({})

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"NodeGraph(start={self._start_node_id!r}, nodes={len(self._nodes)})"
