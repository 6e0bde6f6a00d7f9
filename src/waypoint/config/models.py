"""Configuration models for Waypoint."""

from pydantic import BaseModel, Field

from waypoint.config.settings import Settings
from waypoint.core.constants import ReplyPolicy

# DSL Version constants
SUPPORTED_VERSIONS = frozenset({"1.0"})
CURRENT_VERSION = "1.0"


class NodeConfig(BaseModel):
    """Declarative definition of one dialogue node."""

    id: str = Field(min_length=1, description="Unique node identifier")
    description: str = Field(description="What happens at this node")
    prompt_template: str = Field(description="Entry prompt, may use {context_key} placeholders")
    required_fields: list[str] = Field(default_factory=list)
    next_node_ids: list[str] = Field(default_factory=list)
    handler: str | None = Field(default=None, description="Registered handler name")
    reply_policy: ReplyPolicy = Field(default=ReplyPolicy.SUPPLEMENT)


class WaypointConfig(BaseModel):
    """Root configuration with DSL versioning."""

    version: str = Field(default=CURRENT_VERSION, description="DSL version")
    settings: Settings = Field(default_factory=Settings)
    nodes: list[NodeConfig] | None = Field(
        default=None, description="Node definitions; the default sales graph when omitted"
    )

    def model_post_init(self, __context: object) -> None:
        """Validate DSL version after initialization."""
        if self.version not in SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported DSL version: {self.version}. "
                f"Supported: {', '.join(sorted(SUPPORTED_VERSIONS))}"
            )
