from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Set

logger = logging.getLogger(__name__)


class RetryScheduler:
    """
    One-shot timers for verification call retries.
    Timers live in this process only and die with it.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, delay_seconds: float, job: Callable[[], Awaitable[None]], name: str = "retry") -> asyncio.Task:
        task = asyncio.create_task(self._run(delay_seconds, job, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, delay_seconds: float, job: Callable[[], Awaitable[None]], name: str) -> None:
        await asyncio.sleep(delay_seconds)
        try:
            await job()
        except Exception:
            logger.exception("Scheduled job %s failed", name)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
