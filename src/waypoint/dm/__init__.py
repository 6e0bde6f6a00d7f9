"""Dialogue management: node graph and transition engine."""

from waypoint.dm.engine import TransitionEngine, select_reply
from waypoint.dm.graph import NodeGraph
from waypoint.dm.nodes import Node, render_template
from waypoint.dm.telemetry import TransitionEvent, TransitionTelemetry

__all__ = [
    "Node",
    "NodeGraph",
    "TransitionEngine",
    "TransitionEvent",
    "TransitionTelemetry",
    "render_template",
    "select_reply",
]
