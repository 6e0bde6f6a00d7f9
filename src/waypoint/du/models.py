"""
Pydantic models for the oracle boundary.

DSPy uses Pydantic for output validation and type coercion. Field names are
snake_case; the camelCase names used by JSON-speaking providers are accepted
as validation aliases.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class InputAnalysis(BaseModel):
    """Oracle verdict for one user utterance."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    next_node_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("next_node_id", "nextNodeId"),
        description="The next node id, normally one of the candidate nodes",
    )
    user_inputs: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("user_inputs", "userInputs"),
        description="Fields identified in the user input (name, email, product_choice, ...)",
    )
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence score between 0 and 1")
    suggested_response: str = Field(
        validation_alias=AliasChoices("suggested_response", "suggestedResponse"),
        description="Suggested reply to the user; may be empty",
    )


class CandidateNode(BaseModel):
    """Descriptor of a node the oracle may move the conversation to."""

    id: str = Field(description="Node identifier")
    description: str = Field(description="What happens at this node")
    required_fields: list[str] = Field(
        default_factory=list, description="Context fields this node needs"
    )
    prompt_template: str = Field(default="", description="Entry prompt for the node")

    def __str__(self) -> str:
        req = f" [Requires: {', '.join(self.required_fields)}]" if self.required_fields else ""
        return f"- {self.id}: {self.description}{req}"


class DemoRequest(BaseModel):
    """Arguments of a demo booking filled in by the LLM."""

    name: str = Field(description="Customer's name")
    email: str = Field(description="Customer's email")
    product_choice: str | None = Field(default=None, description="Product selected by customer")
    date: str = Field(description="Demo date (one day after today), YYYY-MM-DDTHH:MM:SS")
