"""
Fire-and-forget scheduling for awaitables returned to synchronous ``emit``.

``emit`` never waits on its handlers.  When a handler returns a coroutine we
hand it to the running loop as a task and keep a strong reference until it
finishes, otherwise the loop may garbage-collect it mid-flight.
"""

import asyncio
import inspect
import logging
from typing import Any
from typing import Awaitable
from typing import Hashable
from typing import Optional

from emitron.config import get_settings

logger = logging.getLogger(__name__)

# Track fire-and-forget tasks to prevent resource leaks
_active_tasks: set = set()


def schedule_fire_and_forget(awaitable: Awaitable[Any], key: Hashable) -> Optional[asyncio.Task]:
    """Run *awaitable* in the background without waiting for it.

    Returns the created task, or ``None`` when no event loop is running (the
    awaitable is then discarded and a warning is logged).
    """

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("Cannot run async handler for event %s - no running event loop", key)
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        return None

    task = loop.create_task(_await_logged(awaitable, key))
    if get_settings().track_background_tasks:
        _active_tasks.add(task)
        task.add_done_callback(_cleanup_task)
    return task


async def _await_logged(awaitable: Awaitable[Any], key: Hashable) -> None:
    # Nobody awaits this task, so failures only ever reach the log
    try:
        await awaitable
    except Exception:
        logger.exception("Background handler for event %s raised", key)


def _cleanup_task(task: asyncio.Task) -> None:
    _active_tasks.discard(task)


def active_task_count() -> int:
    """Number of fire-and-forget tasks still running."""
    return len(_active_tasks)


async def wait_for_background_tasks() -> None:
    """Await every tracked fire-and-forget task (handy in tests and at shutdown)."""
    loop = asyncio.get_running_loop()
    while True:
        pending = [task for task in _active_tasks if task.get_loop() is loop]
        if not pending:
            return
        await asyncio.gather(*pending, return_exceptions=True)
