"""Reply delivery.

The coordinator computes replies; a sink only knows how to push text out
over one transport.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any


class MessageSink(ABC):
    @abstractmethod
    async def send(self, message: str) -> None:
        """Deliver one reply to the user."""
        ...


class WebSocketMessageSink(MessageSink):
    """Writes the JSON envelopes the web client understands.

    Replies go out as ``{"type": "message", "sessionId", "content", "timestamp"}``;
    other envelopes (``connected``, ``error``) via :meth:`send_event`.
    """

    def __init__(self, websocket: Any, session_id: str) -> None:
        self._ws = websocket
        self.session_id = session_id

    async def send(self, message: str) -> None:
        await self._ws.send_json(
            {
                "type": "message",
                "sessionId": self.session_id,
                "content": message,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    async def send_event(self, event_type: str, **payload: Any) -> None:
        await self._ws.send_json({"type": event_type, **payload})
