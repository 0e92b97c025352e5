"""Session clock."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class Countdown:
    """
    Single authoritative clock of a session.

    Decrements once per tick while running and fires ``on_expire`` exactly
    once when it reaches zero. Remaining time never goes below zero.
    """

    def __init__(
        self,
        total_seconds: int,
        on_expire: Callable[[], Awaitable[Any] | Any],
        tick_interval: float = 1.0,
    ) -> None:
        if total_seconds < 0:
            raise ValueError("total_seconds must not be negative")
        self.total_seconds = total_seconds
        self.remaining = total_seconds
        self.tick_interval = tick_interval
        self._on_expire = on_expire
        self._expired = False
        self._stopped = False
        self._task: asyncio.Task[None] | None = None

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopped

    def start(self) -> None:
        if self._task is not None or self._stopped:
            return
        self._task = asyncio.ensure_future(self._run())
        self._task.add_done_callback(_log_failure)

    async def _run(self) -> None:
        while not self._stopped and not self._expired:
            await asyncio.sleep(self.tick_interval)
            await self.tick()

    async def tick(self) -> None:
        """Advance the clock by one second."""
        if self._stopped or self._expired:
            return
        self.remaining = max(0, self.remaining - 1)
        if self.remaining == 0:
            self._expired = True
            self._stopped = True
            logger.info("Countdown expired after %s seconds", self.total_seconds)
            result = self._on_expire()
            if inspect.isawaitable(result):
                await result

    def stop(self) -> None:
        """
        Stop the clock; safe to call repeatedly and from the expiry path.
        Once expired the task is left to finish its expiry callback.
        """
        self._stopped = True
        task = self._task
        if task is None or task.done() or self._expired:
            return
        if task is not asyncio.current_task():
            task.cancel()


def _log_failure(task: asyncio.Task[None]) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Countdown expiry failed", exc_info=task.exception())
