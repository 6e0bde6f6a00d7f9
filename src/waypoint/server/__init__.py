"""Waypoint Server Module.

Provides the FastAPI REST API and WebSocket endpoint.
"""

from waypoint.server.api import app, create_app
from waypoint.server.models import (
    HealthResponse,
    MessageRequest,
    MessageResponse,
    SessionCreatedResponse,
    SessionStateResponse,
)

__all__ = [
    "app",
    "create_app",
    "MessageRequest",
    "MessageResponse",
    "HealthResponse",
    "SessionCreatedResponse",
    "SessionStateResponse",
]
