"""Session model and pure state transition helpers.

A Session is never mutated in place. Every helper here returns new
collections so callers can hand the previous Session back unchanged.
"""

import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from waypoint.core.constants import START_NODE_ID, ContextKey, Role


class Session(BaseModel):
    """State of one ongoing conversation."""

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    current_node_id: str = Field(default=START_NODE_ID, min_length=1)
    context: dict[str, Any] = Field(default_factory=dict)
    conversation_history: list[str] = Field(default_factory=list)


def create_session(start_node_id: str = START_NODE_ID, session_id: str | None = None) -> Session:
    """Create a fresh session positioned at the start node."""
    if session_id is None:
        return Session(current_node_id=start_node_id)
    return Session(session_id=session_id, current_node_id=start_node_id)


def merge_context(context: Mapping[str, Any], user_inputs: Mapping[str, Any]) -> dict[str, Any]:
    """Right-biased union: extracted inputs overwrite existing keys, nothing is deleted."""
    return {**context, **user_inputs}


def format_turn(role: Role, text: str) -> str:
    """Render a role-tagged history entry, e.g. ``User: hello``."""
    return f"{role.value}: {text}"


def parse_turn(entry: str) -> tuple[Role | None, str]:
    """Split a history entry back into (role, text).

    Entries without a known role prefix come back with ``None``.
    """
    for role in Role:
        prefix = f"{role.value}: "
        if entry.startswith(prefix):
            return role, entry[len(prefix) :]
    return None, entry


def append_turn(history: Iterable[str], utterance: str, reply_text: str) -> list[str]:
    """Return a new history with the user entry followed by the reply entry."""
    return [
        *history,
        format_turn(Role.USER, utterance),
        format_turn(Role.AI, reply_text),
    ]


def advance(
    session: Session,
    *,
    node_id: str,
    context: dict[str, Any],
    history: list[str],
) -> Session:
    """Return a copy of ``session`` with node, context and history replaced."""
    return session.model_copy(
        update={
            "current_node_id": node_id,
            "context": context,
            "conversation_history": history,
        }
    )


def missing_fields(context: Mapping[str, Any], required: Iterable[str]) -> list[str]:
    """Required keys that are absent or empty in ``context``, in the given order."""
    return [key for key in required if not context.get(key)]


def customer_profile(context: Mapping[str, Any], fields: Iterable[str] = ()) -> dict[str, Any]:
    """Slice of the context that identifies a customer.

    Always covers the well-known keys; ``fields`` adds any other configured ones.
    """
    keys = dict.fromkeys([*(key.value for key in ContextKey), *fields])
    return {key: context.get(key) for key in keys}
