"""Persistence collaborators: turn log, customer profiles and events."""

from waypoint.persistence.base import ConversationStore, is_profile_complete
from waypoint.persistence.memory import InMemoryConversationStore

__all__ = [
    "ConversationStore",
    "InMemoryConversationStore",
    "is_profile_complete",
]
