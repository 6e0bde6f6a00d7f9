"""Demo scheduling node handler."""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from waypoint.core.constants import ContextKey
from waypoint.core.session import missing_fields
from waypoint.core.types import HandlerResult, History
from waypoint.du.modules import DemoScheduler
from waypoint.persistence.base import ConversationStore
from waypoint.runtime.background import BackgroundTasks

logger = logging.getLogger(__name__)

SCHEDULE_DEMO_HANDLER = "schedule_demo"
DEMO_REQUESTED_EVENT = "demo_requested"

DEMO_REQUIRED_FIELDS = (ContextKey.NAME.value, ContextKey.EMAIL.value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def missing_fields_question(fields: list[str]) -> str:
    """Follow-up question asking for the given context fields."""
    readable = [field.replace("_", " ") for field in fields]
    if len(readable) == 1:
        wanted = readable[0]
    else:
        wanted = ", ".join(readable[:-1]) + f" and {readable[-1]}"
    return f"Before I can schedule a demo, could you share your {wanted}?"


def make_schedule_demo_handler(
    scheduler: DemoScheduler | None = None,
    store: ConversationStore | None = None,
    background: BackgroundTasks | None = None,
    required_fields: Iterable[str] = DEMO_REQUIRED_FIELDS,
    clock: Callable[[], datetime] = _utcnow,
):
    """Build the handler that books a demo once name and email are known.

    The ``demo_requested`` event is recorded in the background; the reply
    does not wait for it.
    """
    scheduler = scheduler or DemoScheduler()
    required = tuple(required_fields)

    async def schedule_demo(
        utterance: str,
        history: History,
        context: Mapping[str, Any],
        session: Any,
    ) -> HandlerResult:
        missing = missing_fields(context, required)
        if missing:
            logger.info(f"Demo not scheduled, missing fields: {missing}")
            return HandlerResult(reply_text=missing_fields_question(missing))

        now = clock()
        request = await scheduler.aforward(context=context, today=now.date().isoformat())
        logger.info(f"Demo scheduled for {request.email} on {request.date}")

        if store is not None and background is not None:
            background.spawn(
                store.record_event(
                    session.session_id,
                    DEMO_REQUESTED_EVENT,
                    request.model_dump(),
                    metadata={"requested_at": now.isoformat(), "source": SCHEDULE_DEMO_HANDLER},
                ),
                name=f"record_event:{DEMO_REQUESTED_EVENT}:{session.session_id}",
            )

        return HandlerResult(
            reply_text=(
                f"Demo scheduled successfully for {request.name} ({request.email}) "
                f"on {request.date}"
            )
        )

    return schedule_demo


def demo_required_fields(node_fields: Iterable[str] = ()) -> tuple[str, ...]:
    """Name and email, followed by any other fields the node declares."""
    extra = sorted(set(node_fields) - set(DEMO_REQUIRED_FIELDS))
    return (*DEMO_REQUIRED_FIELDS, *extra)


def schedule_demo_handler_factory(
    scheduler: DemoScheduler | None = None,
    store: ConversationStore | None = None,
    background: BackgroundTasks | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> Callable[[frozenset[str]], Callable[..., Any]]:
    """Registry factory: one demo handler per node, checking that node's fields."""
    scheduler = scheduler or DemoScheduler()

    def build(node_fields: frozenset[str]):
        return make_schedule_demo_handler(
            scheduler,
            store,
            background,
            required_fields=demo_required_fields(node_fields),
            clock=clock,
        )

    return build
