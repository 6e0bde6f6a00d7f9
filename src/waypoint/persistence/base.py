"""Persistence collaborator interface.

The core calls these operations fire-and-forget: failures are logged by the
background runner and never reach the user or roll back a transition.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from waypoint.core.constants import CUSTOMER_REQUIRED_FIELDS, Role
from waypoint.core.session import customer_profile, missing_fields

logger = logging.getLogger(__name__)


def is_profile_complete(
    context: Mapping[str, Any],
    required_fields: Iterable[str] = CUSTOMER_REQUIRED_FIELDS,
) -> bool:
    """True when every field needed to store a customer is present."""
    return not missing_fields(context, required_fields)


class ConversationStore(ABC):
    """Durable storage of turns, customers and events."""

    def __init__(self, required_fields: Iterable[str] = CUSTOMER_REQUIRED_FIELDS) -> None:
        self.required_fields = tuple(required_fields)

    async def initialize(self) -> None:
        """Prepare backing storage (create tables, open pools)."""
        return None

    async def close(self) -> None:
        """Release backing resources."""
        return None

    @abstractmethod
    async def record_turn(self, session_id: str, role: Role, text: str) -> None:
        """Append one role-tagged message to the session's log."""
        ...

    @abstractmethod
    async def record_event(
        self,
        session_id: str,
        event_name: str,
        data: Mapping[str, Any],
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Record a business event such as ``demo_requested``."""
        ...

    @abstractmethod
    async def _upsert_customer(
        self,
        session_id: str,
        profile: dict[str, Any],
        context: Mapping[str, Any],
    ) -> None:
        """Insert or update the customer keyed by email."""
        ...

    async def upsert_customer_if_complete(
        self,
        session_id: str,
        context: Mapping[str, Any],
    ) -> bool:
        """Upsert the customer when the context holds every required field.

        Returns:
            True if an upsert was performed
        """
        if not is_profile_complete(context, self.required_fields):
            logger.debug(
                f"Skipping customer save - incomplete information (session={session_id}, "
                f"missing={missing_fields(context, self.required_fields)})"
            )
            return False

        profile = customer_profile(context, self.required_fields)
        await self._upsert_customer(session_id, profile, context)
        logger.info(f"Customer information saved (session={session_id})")
        return True
