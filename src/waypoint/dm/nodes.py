"""Dialogue node definition.

A node is one conversational state: an entry prompt, the context fields it
needs before it counts as satisfied, the successors the oracle may choose
from, and an optional side-effect handler.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from waypoint.core.constants import ReplyPolicy
from waypoint.core.session import missing_fields
from waypoint.core.types import NodeHandler


class _PlaceholderDict(dict):
    """Leaves unknown ``{placeholders}`` untouched instead of raising."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_template(template: str, context: Mapping[str, Any]) -> str:
    """Fill ``{key}`` placeholders from context.

    Unknown placeholders are kept verbatim so a partially filled context
    still produces readable text.
    """
    try:
        return template.format_map(_PlaceholderDict(context))
    except (ValueError, IndexError):
        # Unbalanced braces or positional fields: not a template we can fill
        return template


@dataclass(frozen=True)
class Node:
    """Vertex in the dialogue graph."""

    id: str
    description: str
    prompt_template: str
    required_fields: frozenset[str] = field(default_factory=frozenset)
    next_node_ids: tuple[str, ...] = ()
    handler: NodeHandler | None = field(default=None, compare=False, repr=False)
    handler_name: str | None = None
    reply_policy: ReplyPolicy = ReplyPolicy.SUPPLEMENT

    @classmethod
    def create(
        cls,
        id: str,
        description: str,
        prompt_template: str,
        required_fields: Iterable[str] = (),
        next_node_ids: Iterable[str] = (),
        handler: NodeHandler | None = None,
        handler_name: str | None = None,
        reply_policy: ReplyPolicy = ReplyPolicy.SUPPLEMENT,
    ) -> "Node":
        """Build a node from plain iterables."""
        if handler is not None and handler_name is None:
            handler_name = getattr(handler, "__name__", None)
        return cls(
            id=id,
            description=description,
            prompt_template=prompt_template,
            required_fields=frozenset(required_fields),
            next_node_ids=tuple(next_node_ids),
            handler=handler,
            handler_name=handler_name,
            reply_policy=reply_policy,
        )

    @property
    def has_handler(self) -> bool:
        return self.handler is not None

    @property
    def fallback_node_id(self) -> str | None:
        """First declared successor, used when the oracle cannot decide."""
        return self.next_node_ids[0] if self.next_node_ids else None

    def render_prompt(self, context: Mapping[str, Any]) -> str:
        return render_template(self.prompt_template, context)

    def missing_fields(self, context: Mapping[str, Any]) -> list[str]:
        return missing_fields(context, sorted(self.required_fields))

    def is_satisfied(self, context: Mapping[str, Any]) -> bool:
        """True when every required field is present in context."""
        return not self.missing_fields(context)

    def describe(self) -> dict[str, Any]:
        """Plain-data descriptor used in oracle prompts and diagnostics."""
        return {
            "id": self.id,
            "description": self.description,
            "prompt_template": self.prompt_template,
            "required_fields": sorted(self.required_fields),
            "next_node_ids": list(self.next_node_ids),
        }
