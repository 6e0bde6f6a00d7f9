"""Node handlers and their registry."""

from waypoint.actions.registry import HandlerRegistry, as_node_handler

__all__ = ["HandlerRegistry", "as_node_handler"]
