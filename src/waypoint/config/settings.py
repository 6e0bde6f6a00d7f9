"""Settings configuration models.

Global settings for the oracle, handlers, persistence, conversation
defaults and logging.
"""

from typing import Literal

from pydantic import BaseModel, Field

from waypoint.core.constants import CUSTOMER_REQUIRED_FIELDS, ORACLE_APOLOGY, START_NODE_ID

PersistenceBackend = Literal["memory", "sql"]


class OracleConfig(BaseModel):
    """LLM used to analyze turns."""

    provider: str = Field(default="together_ai", description="Model provider (LiteLLM prefix)")
    model: str = Field(
        default="meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo", description="Model identifier"
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    use_reasoning: bool = Field(default=False, description="Use ChainOfThought for reasoning")
    timeout_seconds: float = Field(default=20.0, gt=0, description="Per-turn oracle timeout")

    @property
    def model_id(self) -> str:
        return f"{self.provider}/{self.model}"


class HandlersConfig(BaseModel):
    """Node handler execution."""

    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-handler timeout")


class PersistenceConfig(BaseModel):
    """Persistence configuration."""

    backend: PersistenceBackend = Field(default="memory", description="Backend type: memory, sql")
    url: str = Field(
        default="sqlite+aiosqlite:///waypoint.db",
        description="SQLAlchemy async database URL (sql backend only)",
    )


class ConversationConfig(BaseModel):
    """Conversation defaults."""

    start_node: str = Field(default=START_NODE_ID, min_length=1)
    apology_message: str = Field(
        default=ORACLE_APOLOGY, description="Reply used when the oracle is unavailable"
    )
    customer_required_fields: list[str] = Field(
        default_factory=lambda: list(CUSTOMER_REQUIRED_FIELDS),
        description="Context fields that make a customer profile complete",
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level for the waypoint logger")
    file: str | None = Field(default="waypoint.log", description="JSON log file, null disables")


class Settings(BaseModel):
    """Global settings configuration."""

    oracle: OracleConfig = Field(default_factory=OracleConfig)
    handlers: HandlersConfig = Field(default_factory=HandlersConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
