"""In-memory conversation store for development and tests."""

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from waypoint.core.constants import ContextKey, Role
from waypoint.persistence.base import ConversationStore


@dataclass
class StoredTurn:
    session_id: str
    role: Role
    text: str
    timestamp: datetime


@dataclass
class StoredEvent:
    session_id: str
    name: str
    data: dict[str, Any]
    metadata: dict[str, Any]
    timestamp: datetime


@dataclass
class StoredCustomer:
    email: str
    name: str | None
    product_choice: str | None
    # Well-known keys plus any other configured required fields
    profile: dict[str, Any] = field(default_factory=dict)
    session_ids: list[str] = field(default_factory=list)
    # Snapshots of {timestamp, context}, newest last
    conversation_history: list[dict[str, Any]] = field(default_factory=list)


class InMemoryConversationStore(ConversationStore):
    """Keeps everything in process memory. Lost on restart."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.turns: list[StoredTurn] = []
        self.events: list[StoredEvent] = []
        self.customers: dict[str, StoredCustomer] = {}

    async def record_turn(self, session_id: str, role: Role, text: str) -> None:
        self.turns.append(StoredTurn(session_id, role, text, datetime.now(timezone.utc)))

    async def record_event(
        self,
        session_id: str,
        event_name: str,
        data: Mapping[str, Any],
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self.events.append(
            StoredEvent(
                session_id=session_id,
                name=event_name,
                data=dict(data),
                metadata=dict(metadata or {}),
                timestamp=datetime.now(timezone.utc),
            )
        )

    async def _upsert_customer(
        self,
        session_id: str,
        profile: dict[str, Any],
        context: Mapping[str, Any],
    ) -> None:
        email = str(profile[ContextKey.EMAIL.value])
        customer = self.customers.get(email)
        if customer is None:
            customer = StoredCustomer(email=email, name=None, product_choice=None)
            self.customers[email] = customer

        customer.name = profile.get(ContextKey.NAME.value)
        customer.product_choice = profile.get(ContextKey.PRODUCT_CHOICE.value)
        customer.profile = dict(profile)
        if session_id not in customer.session_ids:
            customer.session_ids.append(session_id)
        customer.conversation_history.append(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "context": copy.deepcopy(dict(context)),
            }
        )

    def turns_for(self, session_id: str) -> list[StoredTurn]:
        return [turn for turn in self.turns if turn.session_id == session_id]

    def events_named(self, event_name: str) -> list[StoredEvent]:
        return [event for event in self.events if event.name == event_name]
