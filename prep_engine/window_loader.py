"""Progressive loading of question windows into placeholder slots."""
from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import Callable

from prep_engine.errors import GenerationFailure
from prep_engine.models import QuestionSlot
from prep_engine.question_source import Batch, QuestionSource

logger = logging.getLogger(__name__)


@dataclass
class WindowStatus:
    """Load state of one window."""

    index: int
    loading: bool = False
    settled: bool = False
    failure: str | None = None

    @property
    def requested(self) -> bool:
        return self.loading or self.settled


class WindowLoader:
    """
    Fills a fixed slot array window by window.

    Each arriving question goes into the first still-Locked slot at or after
    the batch's offset in the window. Writes are dropped once ``is_writable``
    reports the session closed.
    """

    def __init__(
        self,
        slots: list[QuestionSlot],
        window_size: int,
        source: QuestionSource,
        target: str,
        is_writable: Callable[[], bool] = lambda: True,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        if window_size <= 0 or len(slots) % window_size:
            raise ValueError("Slot count must be a multiple of window_size")
        self.slots = slots
        self.window_size = window_size
        self.source = source
        self.target = target
        self._is_writable = is_writable
        self._on_change = on_change
        self.windows = [
            WindowStatus(index) for index in range(len(slots) // window_size)
        ]
        self._tasks: dict[int, asyncio.Task[int]] = {}

    @property
    def window_count(self) -> int:
        return len(self.windows)

    def window_range(self, index: int) -> range:
        if not 0 <= index < self.window_count:
            raise ValueError(f"Window {index} out of range")
        start = index * self.window_size
        return range(start, start + self.window_size)

    def loaded_count(self, index: int) -> int:
        return sum(1 for i in self.window_range(index) if self.slots[i].is_loaded)

    def is_loaded(self, index: int) -> bool:
        return self.loaded_count(index) == self.window_size

    def status(self, index: int) -> WindowStatus:
        return self.windows[index]

    def start(self, index: int) -> asyncio.Task[int]:
        """Schedule a window load on the running loop and return its task."""
        task = self._tasks.get(index)
        if task is None:
            task = asyncio.ensure_future(self.load_window(index))
            self._tasks[index] = task
        return task

    async def load_window(self, index: int) -> int:
        """Load a window; returns how many slots this call filled."""
        window = self.window_range(index)
        status = self.windows[index]

        if self.is_loaded(index):
            return 0
        running = self._tasks.get(index)
        if running is not None and running is not asyncio.current_task():
            await asyncio.shield(running)
            return 0

        status.loading = True
        status.failure = None
        self._notify()
        logger.info("Loading window %s (%s slots from %s)", index, len(window), window.start)

        filled = 0
        try:
            stream = self.source.stream_window(self.target, index, self.window_size)
            async with aclosing(stream) as batches:
                async for batch in batches:
                    if not self._is_writable():
                        logger.debug("Session closed, discarding window %s writes", index)
                        break
                    filled += self._place(index, batch)
                    self._notify()
        except GenerationFailure as exc:
            status.failure = str(exc)
            logger.warning("Window %s failed to load: %s", index, exc)
        finally:
            status.loading = False
            status.settled = True

        if not status.failure and self._is_writable() and not self.is_loaded(index):
            status.failure = (
                f"only {self.loaded_count(index)} of {self.window_size} questions arrived"
            )
            logger.warning("Window %s is partial: %s", index, status.failure)
        logger.info("Window %s settled with %s new questions", index, filled)
        self._notify()
        return filled

    def _place(self, index: int, batch: Batch) -> int:
        window = self.window_range(index)
        cursor = window.start + max(0, batch.offset)
        placed = 0
        for question in batch.questions:
            while cursor < window.stop and self.slots[cursor].is_loaded:
                cursor += 1
            if cursor >= window.stop:
                logger.warning(
                    "Window %s overflow: dropped %s questions",
                    index,
                    len(batch.questions) - placed,
                )
                break
            self.slots[cursor].fill(question)
            placed += 1
        return placed

    def cancel(self) -> None:
        """Cancel every in-flight window load."""
        for index, task in self._tasks.items():
            if not task.done():
                logger.debug("Cancelling load of window %s", index)
                task.cancel()
            self.windows[index].loading = False

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
