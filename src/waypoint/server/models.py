"""API Models - Pydantic models for FastAPI endpoints.

Defines request and response schemas for the Waypoint REST API.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MessageRequest(BaseModel):
    """Request model for sending a user message to a session."""

    content: str = Field(min_length=1, description="User's input message")


class MessageResponse(BaseModel):
    """Response model for processed messages."""

    session_id: str
    content: str = Field(description="Assistant's reply text")
    current_node_id: str = Field(description="Node the conversation is at after this turn")
    degraded: bool = Field(
        default=False, description="True when the oracle was unavailable for this turn"
    )
    timestamp: str = Field(default_factory=_now)


class SessionCreatedResponse(BaseModel):
    """Response model for a newly opened session."""

    session_id: str
    message: str = Field(description="Welcome text of the start node")
    current_node_id: str


class SessionStateResponse(BaseModel):
    """Response model for conversation state endpoint."""

    session_id: str
    current_node_id: str
    context: dict[str, Any]
    conversation_history: list[str]
    turn_count: int


class ResetResponse(BaseModel):
    """Response model for session deletion."""

    success: bool
    message: str


class ComponentStatus(BaseModel):
    """Status of a single component."""

    name: str
    status: Literal["healthy", "degraded", "unhealthy"]
    message: str | None = None
    details: dict[str, int] | None = None


class HealthResponse(BaseModel):
    """Health check response with component details."""

    status: Literal["healthy", "starting", "degraded", "unhealthy"]
    version: str
    timestamp: str = Field(default_factory=_now)
    components: dict[str, ComponentStatus] | None = None


class ReadinessResponse(BaseModel):
    """Readiness probe response."""

    ready: bool
    message: str
    checks: dict[str, bool] | None = None


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(description="Full version string")
    major: int = Field(description="Major version number")
    minor: int = Field(description="Minor version number")
    patch: str = Field(description="Patch version (may include suffix)")
