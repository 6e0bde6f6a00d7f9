"""Core type definitions shared across the engine."""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from waypoint.core.session import Session

# Open context mapping: well-known keys live in ContextKey, anything else is allowed
Context: TypeAlias = dict[str, Any]
History: TypeAlias = list[str]


@dataclass(frozen=True)
class HandlerResult:
    """Text produced by a node handler."""

    reply_text: str


# (utterance, history, context, session) -> HandlerResult
NodeHandler: TypeAlias = Callable[
    [str, History, Mapping[str, Any], "Session"], Awaitable[HandlerResult]
]


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one conversational turn."""

    reply_text: str
    session: "Session"
    oracle_degraded: bool = False
    handler_failed: bool = False
