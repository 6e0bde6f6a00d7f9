"""Waypoint - conversation orchestration engine for a sales assistant.

An LLM oracle proposes the next node of a fixed dialogue graph and
extracts fields from each user message; the engine validates the
transition, runs node handlers and keeps the session.

Quick start:
    from waypoint.config import WaypointConfig
    from waypoint.runtime.builder import RuntimeInitializer

    components = await RuntimeInitializer(WaypointConfig()).initialize()
    welcome = await components.coordinator.connect()
    result = await components.coordinator.handle_message(welcome.connection_id, "Hi, I'm Alex")
"""

from waypoint.__version__ import __version__
from waypoint.core.errors import (
    ConfigError,
    GraphBuildError,
    InvalidStateError,
    OracleUnavailableError,
    PersistenceError,
    SessionNotFoundError,
    WaypointError,
)
from waypoint.core.session import Session, create_session

__all__ = [
    "__version__",
    "WaypointError",
    "ConfigError",
    "GraphBuildError",
    "InvalidStateError",
    "OracleUnavailableError",
    "PersistenceError",
    "SessionNotFoundError",
    "Session",
    "create_session",
]
