"""Core types, errors and session model."""

from waypoint.core.constants import ContextKey, ReplyPolicy, Role
from waypoint.core.errors import (
    ConfigError,
    GraphBuildError,
    HandlerFailureError,
    InvalidStateError,
    OracleUnavailableError,
    PersistenceError,
    SessionNotFoundError,
    WaypointError,
)
from waypoint.core.message_sink import MessageSink, WebSocketMessageSink
from waypoint.core.session import Session, create_session
from waypoint.core.types import HandlerResult, TurnResult

__all__ = [
    "ContextKey",
    "ReplyPolicy",
    "Role",
    "WaypointError",
    "ConfigError",
    "GraphBuildError",
    "InvalidStateError",
    "OracleUnavailableError",
    "HandlerFailureError",
    "PersistenceError",
    "SessionNotFoundError",
    "MessageSink",
    "WebSocketMessageSink",
    "Session",
    "create_session",
    "HandlerResult",
    "TurnResult",
]
