"""Core constants and enums."""

from enum import Enum

START_NODE_ID = "welcome"

ORACLE_APOLOGY = "I apologize, but I encountered an issue. How can I help you?"
HANDLER_APOLOGY = "I'm sorry, I encountered an issue. Could you please try again?"

FALLBACK_CONFIDENCE = 0.5


class Role(str, Enum):
    """Speaker tag for conversation history entries."""

    USER = "User"
    AI = "AI"


class ContextKey(str, Enum):
    """Well-known context keys that completion checks and persistence rely on."""

    NAME = "name"
    EMAIL = "email"
    PRODUCT_CHOICE = "product_choice"


class ReplyPolicy(str, Enum):
    """How a node handler's text combines with the oracle's suggested reply."""

    REPLACE = "replace"
    SUPPLEMENT = "supplement"


# Minimum profile for a customer upsert
CUSTOMER_REQUIRED_FIELDS: tuple[str, ...] = (
    ContextKey.NAME.value,
    ContextKey.EMAIL.value,
    ContextKey.PRODUCT_CHOICE.value,
)
