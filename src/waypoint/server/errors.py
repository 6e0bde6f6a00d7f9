"""HTTP error mapping for the API.

Clients get a status code, a fixed message and a reference code. The
exception text stays in the server log under that reference.
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse

from waypoint.core.errors import (
    ConfigError,
    InvalidStateError,
    PersistenceError,
    SessionNotFoundError,
    WaypointError,
)

logger = logging.getLogger(__name__)

SUPPORT_HINT = "If this problem persists, contact support with the reference code."


@dataclass(frozen=True)
class ErrorMapping:
    status_code: int
    public_message: str


# First isinstance match wins
ERROR_MAPPINGS: tuple[tuple[type[Exception], ErrorMapping], ...] = (
    (
        SessionNotFoundError,
        ErrorMapping(404, "Session not found. Please start a new conversation."),
    ),
    (
        InvalidStateError,
        ErrorMapping(409, "Session state error. Please start a new conversation."),
    ),
    (PersistenceError, ErrorMapping(503, "Storage is unavailable. Please try again later.")),
    (ConfigError, ErrorMapping(500, "Internal configuration error.")),
)

UNEXPECTED_ERROR = ErrorMapping(500, "An internal error occurred. Please try again later.")


def create_error_reference() -> str:
    """Short code shared by the response body and the log line."""
    return f"ERR-{uuid.uuid4().hex[:8].upper()}"


def mapping_for(exception: Exception) -> ErrorMapping:
    for error_type, mapping in ERROR_MAPPINGS:
        if isinstance(exception, error_type):
            return mapping
    return UNEXPECTED_ERROR


def _error_response(request: Request, exc: Exception) -> JSONResponse:
    mapping = mapping_for(exc)
    reference = create_error_reference()
    summary = f"[{reference}] {request.method} {request.url.path}: {type(exc).__name__}: {exc}"
    extra = {"error_reference": reference, "endpoint": request.url.path}

    if mapping.status_code >= 500:
        logger.error(summary, exc_info=exc, extra=extra)
    else:
        logger.info(summary, extra=extra)

    return JSONResponse(
        status_code=mapping.status_code,
        content={
            "error": mapping.public_message,
            "reference": reference,
            "message": SUPPORT_HINT,
        },
    )


async def waypoint_exception_handler(request: Request, exc: WaypointError) -> JSONResponse:
    """Domain errors raised by a route."""
    return _error_response(request, exc)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else: always a 500 with the generic message."""
    return _error_response(request, exc)
