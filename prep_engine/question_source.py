"""
Question source: merges AI-generated and static questions into windows.

Full-test windows are assembled block by block from the subject sequence
table. Each block is delivered with its offset inside the window, so slot
positions keep matching subject blocks whatever order the blocks finish in.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Protocol

from prep_engine.blueprint import FULL, window_blocks
from prep_engine.errors import GenerationFailure
from prep_engine.models import Question

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 25
DEFAULT_STATIC_BLEND = 5


class QuestionGenerator(Protocol):
    async def generate(
        self, subject_or_full: str, count: int, window_index: int
    ) -> list[Question]:
        """Return up to ``count`` questions; may raise GenerationFailure."""
        ...


class StaticQuestionStore(Protocol):
    async def get_static_questions(self, subject: str, limit: int) -> list[Question]:
        """Return up to ``limit`` questions of a subject; never raises."""
        ...


@dataclass(frozen=True)
class Batch:
    """Questions to place from ``offset`` (relative to the window start)."""

    offset: int
    questions: tuple[Question, ...]


class QuestionSource:
    """Combines a question generator with the static pool."""

    def __init__(
        self,
        generator: QuestionGenerator,
        static_store: StaticQuestionStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        static_blend: int = DEFAULT_STATIC_BLEND,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.generator = generator
        self.static_store = static_store
        self.batch_size = batch_size
        self.static_blend = max(0, static_blend)

    async def stream_window(
        self, subject_or_full: str, window_index: int, size: int
    ) -> AsyncIterator[Batch]:
        """
        Yield the batches of a window as they become available.

        Raises:
            GenerationFailure: generation failed and nothing could be
                delivered for the window.
        """
        if subject_or_full == FULL:
            stream = self._stream_full(window_index, size)
        else:
            stream = self._stream_subject(subject_or_full, window_index, size)

        delivered = 0
        errors: list[GenerationFailure] = []
        async with aclosing(stream) as parts:
            async for batch, error in parts:
                if error is not None:
                    errors.append(error)
                if batch.questions:
                    delivered += len(batch.questions)
                    yield batch

        if delivered == 0 and errors:
            raise GenerationFailure(
                f"No questions for window {window_index} of {subject_or_full}"
            ) from errors[-1]

    async def fetch_window(
        self, subject_or_full: str, window_index: int, size: int
    ) -> list[Question]:
        """Collect a whole window in delivery order."""
        questions: list[Question] = []
        async for batch in self.stream_window(subject_or_full, window_index, size):
            questions.extend(batch.questions)
        return questions

    async def _stream_subject(self, subject: str, window_index: int, size: int):
        generated_target = max(0, size - self.static_blend)
        generated = 0
        error: GenerationFailure | None = None

        while generated < generated_target:
            count = min(self.batch_size, generated_target - generated)
            try:
                questions = await self._generate(subject, count, window_index)
            except GenerationFailure as exc:
                logger.warning(
                    "Generation failed for %s window %s: %s", subject, window_index, exc
                )
                error = exc
                break
            if not questions:
                break
            generated += len(questions)
            yield Batch(0, tuple(questions)), None

        missing = size - generated
        static = await self._static(subject, missing) if missing > 0 else []
        logger.debug(
            "Subject window %s for %s: %s generated, %s static",
            window_index,
            subject,
            generated,
            len(static),
        )
        yield Batch(0, tuple(static)), error

    async def _stream_full(self, window_index: int, size: int):
        offsets = []
        offset = 0
        for subject, count in window_blocks(window_index):
            if offset >= size:
                break
            count = min(count, size - offset)
            offsets.append((offset, subject, count))
            offset += count

        tasks = [
            asyncio.ensure_future(self._fetch_block(subject, count, block_offset, window_index))
            for block_offset, subject, count in offsets
        ]
        try:
            for future in asyncio.as_completed(tasks):
                yield await future
        finally:
            for task in tasks:
                task.cancel()

    async def _fetch_block(
        self, subject: str, count: int, offset: int, window_index: int
    ) -> tuple[Batch, GenerationFailure | None]:
        questions: list[Question] = []
        error: GenerationFailure | None = None

        while len(questions) < count:
            size = min(self.batch_size, count - len(questions))
            try:
                batch = await self._generate(subject, size, window_index)
            except GenerationFailure as exc:
                logger.warning(
                    "Generation failed for %s block of window %s: %s",
                    subject,
                    window_index,
                    exc,
                )
                error = exc
                break
            if not batch:
                break
            questions.extend(batch)

        missing = count - len(questions)
        if missing > 0:
            questions.extend(await self._static(subject, missing))
        return Batch(offset, tuple(questions[:count])), error

    async def _generate(self, subject: str, count: int, window_index: int) -> list[Question]:
        try:
            questions = await self.generator.generate(subject, count, window_index)
        except GenerationFailure:
            raise
        except Exception as exc:
            raise GenerationFailure(str(exc)) from exc
        return [_relabel(question, subject) for question in questions[:count]]

    async def _static(self, subject: str, limit: int) -> list[Question]:
        questions = await self.static_store.get_static_questions(subject, limit)
        matching = [question for question in questions if question.subject == subject]
        if len(matching) < len(questions):
            logger.debug(
                "Dropped %s static questions outside %s",
                len(questions) - len(matching),
                subject,
            )
        return matching[:limit]


def _relabel(question: Question, subject: str) -> Question:
    if question.subject == subject:
        return question
    return dataclasses.replace(question, subject=subject)
