"""Fire-and-forget background work on the running event loop.

Tasks spawned here have no result observed by the caller. References are
kept until completion (the loop only holds weak references), and a failed
task is logged instead of surfacing as "exception was never retrieved".
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)

_pending: set[asyncio.Task[Any]] = set()


def _on_done(task: asyncio.Task[Any]) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(
            "Background task %s failed: %s",
            task.get_name(),
            exc,
            exc_info=exc,
        )


def fire_and_forget(
    coro: Coroutine[Any, Any, Any], *, name: str | None = None
) -> asyncio.Task[Any]:
    """Schedule coro on the running loop and return its task (callers normally ignore it)."""
    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_count() -> int:
    """Return how many background tasks are still running."""
    return len(_pending)


async def drain(timeout: float | None = None) -> None:
    """Wait for outstanding background tasks (shutdown and tests)."""
    while _pending:
        await asyncio.wait(set(_pending), timeout=timeout)
        if timeout is not None:
            return
