"""Detached side effects that must not gate a reply.

Replaces bare unawaited calls: every spawned coroutine is tracked, its
failure is logged, and shutdown can drain what is still in flight.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Tracks fire-and-forget tasks and logs their failures.

    Usage:
        tasks = BackgroundTasks()
        tasks.spawn(store.record_turn(sid, Role.USER, text), name="record_turn")
        ...
        await tasks.drain()
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self.failures = 0
        self.completed = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        """Schedule ``coro`` on the running loop without awaiting it."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        # Held until done; the event loop only keeps weak references
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug(f"Background task {task.get_name()} cancelled")
            return

        exc = task.exception()
        if exc is not None:
            self.failures += 1
            logger.error(
                f"Background task {task.get_name()} failed: {type(exc).__name__}: {exc}",
                exc_info=exc,
            )
            return
        self.completed += 1

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight tasks; cancel whatever is left after ``timeout``."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        for task in still_pending:
            task.cancel()
        if still_pending:
            logger.warning(f"Cancelled {len(still_pending)} background tasks on drain")
            await asyncio.gather(*still_pending, return_exceptions=True)
