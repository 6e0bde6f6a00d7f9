"""Handler registry for node side effects."""

import inspect
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from waypoint.core.types import HandlerResult, History, NodeHandler

# What a registered function may look like before normalization:
# sync or async, returning a HandlerResult or plain text
RawHandler = Callable[..., Any]
# Builds a handler for a node from that node's required fields
HandlerFactory = Callable[[frozenset[str]], RawHandler]


def as_node_handler(func: RawHandler) -> NodeHandler:
    """Wrap ``func`` so it always awaits to a HandlerResult.

    Accepts sync and async callables returning either a HandlerResult or
    a string.
    """

    async def handler(
        utterance: str,
        history: History,
        context: Mapping[str, Any],
        session: Any,
    ) -> HandlerResult:
        result = func(utterance, history, context, session)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, HandlerResult):
            return result
        return HandlerResult(reply_text="" if result is None else str(result))

    handler.__name__ = getattr(func, "__name__", "handler")
    handler.__doc__ = func.__doc__
    return handler


class HandlerRegistry:
    """Registry for node handlers, looked up by name when the graph is built.

    A name maps either to a handler or to a factory. Factories receive the
    ``required_fields`` declared on the node that references them, so one
    registration can serve nodes with different completion checks.

    Usage:
        registry = HandlerRegistry()

        @registry.register("greet_back")
        async def greet_back(utterance, history, context, session):
            return f"Hi {context.get('name', 'there')}"

        handler = registry.get("greet_back")
        result = await handler("hello", [], {"name": "Ana"}, session)
    """

    def __init__(self) -> None:
        self._handlers: dict[str, NodeHandler] = {}
        self._factories: dict[str, HandlerFactory] = {}

    def register_handler(self, name: str, handler: RawHandler) -> None:
        """Register a handler under ``name``, replacing any previous one."""
        self._factories.pop(name, None)
        self._handlers[name] = as_node_handler(handler)

    def register_factory(self, name: str, factory: HandlerFactory) -> None:
        """Register a factory called with the node's required fields on lookup."""
        self._handlers.pop(name, None)
        self._factories[name] = factory

    def register(self, name: str) -> Callable[[RawHandler], RawHandler]:
        """Decorator form of :meth:`register_handler`."""

        def decorator(handler: RawHandler) -> RawHandler:
            self.register_handler(name, handler)
            return handler

        return decorator

    def get(self, name: str, required_fields: Iterable[str] = ()) -> NodeHandler | None:
        """Handler for ``name``; factories are built with ``required_fields``."""
        factory = self._factories.get(name)
        if factory is not None:
            return as_node_handler(factory(frozenset(required_fields)))
        return self._handlers.get(name)

    @property
    def names(self) -> list[str]:
        return sorted({*self._handlers, *self._factories})

    def __contains__(self, name: object) -> bool:
        """Check if a handler is registered."""
        return name in self._handlers or name in self._factories

    def __len__(self) -> int:
        return len(self._handlers) + len(self._factories)
