"""In-memory collaborators for driving the session engine in tests."""
import asyncio
import dataclasses

from prep_engine.errors import GenerationFailure
from prep_engine.models import Difficulty, Question


def make_question(subject: str = "Mathematics", n: int = 0, correct: int = 0, tag: str = "gen") -> Question:
    return Question(
        text=f"{subject} {tag} question {n}",
        options=("A", "B", "C", "D"),
        correct_answer_index=correct,
        explanation=f"Option {correct} is right",
        subject=subject,
        id=f"{tag}-{subject}-{n}",
    )


class FakeGenerator:
    """
    Produces numbered questions per subject.

    ``supply`` caps how many questions a subject can ever yield, ``failing``
    holds subjects or (window, subject) pairs that raise, ``delays`` delays
    a subject's response in seconds.
    """

    def __init__(self, supply=None, failing=(), delays=None):
        self.supply = dict(supply or {})
        self.failing = set(failing)
        self.delays = dict(delays or {})
        self.calls: list[tuple[str, int, int]] = []
        self.produced: dict[str, int] = {}

    async def generate(self, subject_or_full, count, window_index):
        self.calls.append((subject_or_full, count, window_index))
        delay = self.delays.get(subject_or_full, 0)
        if delay:
            await asyncio.sleep(delay)
        if subject_or_full in self.failing or (window_index, subject_or_full) in self.failing:
            raise GenerationFailure(f"{subject_or_full} unavailable")

        start = self.produced.get(subject_or_full, 0)
        available = self.supply.get(subject_or_full, start + count) - start
        count = max(0, min(count, available))
        self.produced[subject_or_full] = start + count
        return [make_question(subject_or_full, start + i) for i in range(count)]

    async def generate_important(self, subject, count):
        questions = await self.generate(subject, count, 0)
        return [dataclasses.replace(q, is_important=True) for q in questions]

    async def generate_bank(self, subject, difficulty, count):
        questions = await self.generate(subject, count, 0)
        return [dataclasses.replace(q, difficulty=Difficulty(difficulty)) for q in questions]


class FakeStaticStore:
    """Static pool with a fixed number of questions per subject."""

    def __init__(self, pool=None, foreign=None):
        self.pool = dict(pool or {})
        self.foreign = dict(foreign or {})
        self.calls: list[tuple[str, int]] = []

    async def get_static_questions(self, subject, limit):
        self.calls.append((subject, limit))
        own = [
            make_question(subject, i, tag="static")
            for i in range(min(limit, self.pool.get(subject, 0)))
        ]
        other = self.foreign.get(subject)
        if other:
            own.insert(0, make_question(other, 0, tag="static"))
        return own


class RecordingAttemptSink:
    def __init__(self, fail=False):
        self.fail = fail
        self.saved = []

    async def save_attempt(self, summary):
        if self.fail:
            raise RuntimeError("database is locked")
        self.saved.append(summary)


class RecordingBookmarkSink:
    def __init__(self):
        self.saved = []

    async def add_bookmark(self, question):
        self.saved.append(question)


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Yield to the loop until ``predicate()`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)
