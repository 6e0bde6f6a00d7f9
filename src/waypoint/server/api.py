"""Waypoint FastAPI Application.

REST session endpoints and the conversation WebSocket, backed by the
TurnCoordinator built at startup.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Literal

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from waypoint.__version__ import __version__, get_version_info
from waypoint.config import ConfigLoader, WaypointConfig
from waypoint.core.errors import WaypointError
from waypoint.core.message_sink import WebSocketMessageSink
from waypoint.du.oracle import Oracle
from waypoint.persistence.base import ConversationStore
from waypoint.server.dependencies import CoordinatorDep
from waypoint.server.errors import global_exception_handler, waypoint_exception_handler
from waypoint.server.models import (
    ComponentStatus,
    HealthResponse,
    MessageRequest,
    MessageResponse,
    ReadinessResponse,
    ResetResponse,
    SessionCreatedResponse,
    SessionStateResponse,
    VersionResponse,
)

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "WAYPOINT_CONFIG_PATH"
DEFAULT_CONFIG_FILE = "waypoint.yaml"
CONNECTED_MESSAGE = "Connected to sales agent"
WS_ERROR_MESSAGE = "Error processing your message"

router = APIRouter()


def load_config_from_env() -> WaypointConfig:
    """Config named by WAYPOINT_CONFIG_PATH, ./waypoint.yaml, or built-in defaults."""
    config_path = os.environ.get(CONFIG_PATH_ENV)
    if not config_path and os.path.exists(DEFAULT_CONFIG_FILE):
        config_path = DEFAULT_CONFIG_FILE

    if not config_path:
        logger.warning(
            f"{CONFIG_PATH_ENV} not set and {DEFAULT_CONFIG_FILE} not found. "
            "Using built-in defaults."
        )
        return ConfigLoader.from_dict({}, source="defaults")

    logger.info(f"Loading config from {config_path}")
    return ConfigLoader.load(config_path)


def _build_lifespan(
    config: WaypointConfig | None,
    oracle: Oracle | None,
    store: ConversationStore | None,
):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - initialize on startup, cleanup on shutdown."""
        load_dotenv()
        from waypoint.runtime.builder import RuntimeInitializer

        try:
            resolved = config or load_config_from_env()
            if oracle is None:
                from waypoint.core.dspy_service import DSPyBootstrapper

                DSPyBootstrapper.bootstrap(resolved)
            runtime = await RuntimeInitializer(resolved, oracle=oracle, store=store).initialize()
        except WaypointError as e:
            logger.error(f"Runtime initialization failed: {e}", exc_info=True)
            app.state.startup_error = str(e)
            yield
            return

        app.state.config = resolved
        app.state.runtime = runtime
        logger.info("Runtime initialized and ready.")
        try:
            yield
        finally:
            logger.info("Runtime cleanup...")
            app.state.runtime = None
            await runtime.shutdown()

    return lifespan


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe with transition counters."""
    runtime = getattr(request.app.state, "runtime", None)

    if runtime is None:
        failed = getattr(request.app.state, "startup_error", None) is not None
        return HealthResponse(status="unhealthy" if failed else "starting", version=__version__)

    background = runtime.background
    engine_details = runtime.telemetry.snapshot()
    engine_details["active_sessions"] = runtime.coordinator.active_sessions
    persistence_status: Literal["healthy", "degraded"] = (
        "degraded" if background.failures else "healthy"
    )
    components = {
        "engine": ComponentStatus(name="engine", status="healthy", details=engine_details),
        "persistence": ComponentStatus(
            name="persistence",
            status=persistence_status,
            message=f"{background.failures} background writes failed"
            if background.failures
            else None,
            details={
                "pending": background.pending,
                "completed": background.completed,
                "failures": background.failures,
            },
        ),
    }
    status: Literal["healthy", "degraded"] = (
        "degraded" if persistence_status == "degraded" else "healthy"
    )
    return HealthResponse(status=status, version=__version__, components=components)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness probe for Kubernetes."""
    runtime = getattr(request.app.state, "runtime", None)

    if not runtime:
        return ReadinessResponse(
            ready=False, message="Runtime not initialized", checks={"runtime": False}
        )

    return ReadinessResponse(ready=True, message="Service is ready", checks={"runtime": True})


@router.get("/startup")
async def startup_check(request: Request) -> JSONResponse:
    """Startup probe for Kubernetes."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime:
        return JSONResponse(status_code=200, content={"status": "started"})
    return JSONResponse(status_code=503, content={"status": "starting"})


@router.get("/version", response_model=VersionResponse)
def get_version() -> VersionResponse:
    """Get detailed version information."""
    info = get_version_info()
    return VersionResponse(
        version=info.full, major=info.major, minor=info.minor, patch=info.patch
    )


@router.post("/sessions", response_model=SessionCreatedResponse, status_code=201)
async def create_session(coordinator: CoordinatorDep) -> SessionCreatedResponse:
    """Open a conversation and return the welcome text."""
    welcome = await coordinator.connect()
    return SessionCreatedResponse(
        session_id=welcome.connection_id,
        message=welcome.text,
        current_node_id=welcome.session.current_node_id,
    )


@router.post("/sessions/{session_id}/messages", response_model=MessageResponse)
async def send_message(
    session_id: str,
    request: MessageRequest,
    coordinator: CoordinatorDep,
) -> MessageResponse:
    """Process a user message and return the assistant reply."""
    result = await coordinator.handle_message(session_id, request.content)
    return MessageResponse(
        session_id=session_id,
        content=result.reply_text,
        current_node_id=result.session.current_node_id,
        degraded=result.oracle_degraded,
    )


@router.get("/sessions/{session_id}", response_model=SessionStateResponse)
async def get_session_state(session_id: str, coordinator: CoordinatorDep) -> SessionStateResponse:
    """Get the current conversation state."""
    session = coordinator.get_session(session_id)
    return SessionStateResponse(
        session_id=session_id,
        current_node_id=session.current_node_id,
        context=session.context,
        conversation_history=session.conversation_history,
        turn_count=len(session.conversation_history) // 2,
    )


@router.delete("/sessions/{session_id}", response_model=ResetResponse)
async def delete_session(session_id: str, coordinator: CoordinatorDep) -> ResetResponse:
    """Discard a conversation."""
    coordinator.get_session(session_id)
    coordinator.disconnect(session_id)
    return ResetResponse(success=True, message=f"Session {session_id} closed")


@router.websocket("/ws")
async def conversation_socket(websocket: WebSocket) -> None:
    """One conversation per connection; discarded when the socket closes."""
    runtime = getattr(websocket.app.state, "runtime", None)
    if runtime is None:
        # 1013: try again later
        await websocket.close(code=1013)
        return

    await websocket.accept()
    coordinator = runtime.coordinator
    welcome = await coordinator.connect()
    connection_id = welcome.connection_id
    sink = WebSocketMessageSink(websocket, welcome.session.session_id)

    try:
        await sink.send_event(
            "connected", sessionId=welcome.session.session_id, message=CONNECTED_MESSAGE
        )
        await sink.send(welcome.text)

        while True:
            raw = await websocket.receive_text()
            try:
                inbound = MessageRequest.model_validate_json(raw)
                result = await coordinator.handle_message(connection_id, inbound.content)
            except ValidationError as e:
                logger.warning(f"Malformed message on connection {connection_id}: {e}")
                await sink.send_event("error", message=WS_ERROR_MESSAGE)
                continue
            except Exception as e:
                logger.error(
                    f"Error processing message on connection {connection_id}: "
                    f"{type(e).__name__}: {e}",
                    exc_info=True,
                )
                await sink.send_event("error", message=WS_ERROR_MESSAGE)
                continue
            await sink.send(result.reply_text)
    except WebSocketDisconnect:
        logger.info(f"Client disconnected: {connection_id}")
    finally:
        coordinator.disconnect(connection_id)


def create_app(
    config: WaypointConfig | None = None,
    oracle: Oracle | None = None,
    store: ConversationStore | None = None,
) -> FastAPI:
    """Factory function.

    Args:
        config: Configuration; read from WAYPOINT_CONFIG_PATH when None
        oracle: Oracle to use instead of the configured LLM
        store: Persistence store to use instead of the configured backend
    """
    app = FastAPI(
        title="Waypoint Conversation Engine",
        description="Graph-driven sales assistant with an LLM oracle, using DSPy",
        version=__version__,
        lifespan=_build_lifespan(config, oracle, store),
    )
    app.add_exception_handler(WaypointError, waypoint_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.include_router(router)
    return app


app = create_app()
