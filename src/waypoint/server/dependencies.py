"""FastAPI dependencies for server endpoints.

Components live on ``app.state`` rather than in module globals, so each
app instance (and each test) owns its own runtime.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, HTTPException, Request

if TYPE_CHECKING:
    from waypoint.runtime.builder import RuntimeComponents
    from waypoint.runtime.coordinator import TurnCoordinator


def get_runtime(request: Request) -> RuntimeComponents:
    """Dependency to get initialized runtime components.

    Raises:
        HTTPException: 503 if runtime not initialized
    """
    runtime = getattr(request.app.state, "runtime", None)

    if runtime is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Service temporarily unavailable",
                "message": "Server is starting up. Please try again in a few seconds.",
            },
        )
    return runtime


def get_coordinator(request: Request) -> TurnCoordinator:
    """Dependency to get the turn coordinator."""
    return get_runtime(request).coordinator


# Type aliases for cleaner endpoint signatures
RuntimeDep = Annotated["RuntimeComponents", Depends(get_runtime)]
CoordinatorDep = Annotated["TurnCoordinator", Depends(get_coordinator)]
