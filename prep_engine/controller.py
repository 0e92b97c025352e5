"""
Session controller: the state machine of one test attempt.

It owns the slot array, the answers, the review flags and the clock, starts
window loads according to its advancement policy and is the single place
where a session is submitted and scored.
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from prep_engine.answers import AnswerTracker, BookmarkMark, check_slot
from prep_engine.blueprint import TestPlan
from prep_engine.countdown import Countdown
from prep_engine.errors import PersistenceFailure, SessionAborted, SessionClosed
from prep_engine.models import AttemptSummary, Phase, Question, QuestionSlot, SessionInfo
from prep_engine.policy import GatedPolicy, WindowAdvancementPolicy
from prep_engine.question_source import QuestionSource
from prep_engine.scoring import ScoreResult, score_session
from prep_engine.window_loader import WindowLoader

logger = logging.getLogger(__name__)

WRITABLE_PHASES = (Phase.INITIALIZING, Phase.ACTIVE)


class AttemptSink(Protocol):
    async def save_attempt(self, summary: AttemptSummary) -> Any: ...


class BookmarkSink(Protocol):
    async def add_bookmark(self, question: Question) -> Any: ...


@dataclass(frozen=True)
class WindowState:
    index: int
    requested: bool
    loading: bool
    settled: bool
    loaded_count: int
    answered_count: int
    loaded: bool
    complete: bool
    satisfied: bool
    failure: str | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session published after every change."""

    session_id: str
    phase: Phase
    info: SessionInfo
    slots: tuple[Question | None, ...]
    answers: dict[int, int]
    flags: frozenset[int]
    bookmarks: frozenset[int]
    windows: tuple[WindowState, ...]
    can_advance: bool
    result: ScoreResult | None = None
    error: str | None = None
    persistence_error: str | None = None

    @property
    def is_submitted(self) -> bool:
        return self.info.submitted


Listener = Callable[[SessionSnapshot], None]


class SessionController:
    """Drives one test attempt from start to review."""

    def __init__(
        self,
        plan: TestPlan,
        source: QuestionSource,
        *,
        policy: WindowAdvancementPolicy | None = None,
        attempt_sink: AttemptSink | None = None,
        bookmark_sink: BookmarkSink | None = None,
        tick_interval: float = 1.0,
        clock: Callable[[], float] = time.time,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.plan = plan
        self.policy = policy or GatedPolicy()
        self.attempt_sink = attempt_sink
        self.bookmark_sink = bookmark_sink
        self._clock = clock

        self.info = SessionInfo(
            test_kind=plan.test_kind,
            subject=plan.subject,
            total_question_count=plan.total_question_count,
            window_size=plan.window_size,
            window_count=plan.window_count,
            started_at_epoch_ms=int(clock() * 1000),
            time_remaining_seconds=plan.duration_seconds,
        )
        self.phase = Phase.INITIALIZING
        self.error: str | None = None
        self.persistence_error: str | None = None

        self.slots = [QuestionSlot(index) for index in range(plan.total_question_count)]
        self.loader = WindowLoader(
            self.slots,
            plan.window_size,
            source,
            plan.target,
            is_writable=self.is_writable,
            on_change=self._on_slots_changed,
        )
        self.answers = AnswerTracker(self.slots, self.is_writable)
        self.flags = BookmarkMark(self.slots, self.is_writable)
        self.bookmarks: set[int] = set()
        self.countdown = Countdown(plan.duration_seconds, self._on_expire, tick_interval)

        self._result: ScoreResult | None = None
        self._listeners: list[Listener] = []
        self._started = asyncio.Event()
        self._preload_task: asyncio.Task[None] | None = None

    # Observed state

    def is_writable(self) -> bool:
        return self.phase in WRITABLE_PHASES

    @property
    def is_submitted(self) -> bool:
        return self.info.submitted

    @property
    def result(self) -> ScoreResult | None:
        return self._result

    @property
    def time_remaining(self) -> int:
        return self.countdown.remaining

    @property
    def current_window_index(self) -> int:
        return self.info.current_window_index

    @property
    def window_count(self) -> int:
        return self.plan.window_count

    def is_window_requested(self, index: int) -> bool:
        return self.loader.status(index).requested

    def is_window_loaded(self, index: int) -> bool:
        return self.loader.is_loaded(index)

    def is_window_complete(self, index: int) -> bool:
        window = self.loader.window_range(index)
        return self.answers.answered_in(window) == len(window)

    def is_window_satisfied(self, index: int) -> bool:
        """Settled, and every question that did arrive has an answer."""
        if not self.loader.status(index).settled:
            return False
        window = self.loader.window_range(index)
        return all(
            self.answers.get_answer(i) is not None
            for i in window
            if self.slots[i].is_loaded
        )

    def window_state(self, index: int) -> WindowState:
        status = self.loader.status(index)
        window = self.loader.window_range(index)
        return WindowState(
            index=index,
            requested=status.requested,
            loading=status.loading,
            settled=status.settled,
            loaded_count=self.loader.loaded_count(index),
            answered_count=self.answers.answered_in(window),
            loaded=self.loader.is_loaded(index),
            complete=self.is_window_complete(index),
            satisfied=self.is_window_satisfied(index),
            failure=status.failure,
        )

    def can_advance(self) -> bool:
        if not self.is_writable():
            return False
        return self.policy.can_advance(self) or self.policy.can_finish(self)

    def snapshot(self) -> SessionSnapshot:
        self.info.time_remaining_seconds = self.countdown.remaining
        return SessionSnapshot(
            session_id=self.id,
            phase=self.phase,
            info=SessionInfo(**vars(self.info)),
            slots=tuple(slot.question for slot in self.slots),
            answers=dict(self.answers.answers),
            flags=self.flags.marked,
            bookmarks=frozenset(self.bookmarks),
            windows=tuple(self.window_state(i) for i in range(self.window_count)),
            can_advance=self.can_advance(),
            result=self._result,
            error=self.error,
            persistence_error=self.persistence_error,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a snapshot listener; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # Lifecycle

    async def start(self) -> None:
        """Begin loading and start the clock; the session is Active at once."""
        if self.phase is not Phase.INITIALIZING:
            raise SessionClosed(f"Session {self.id} already started")

        self.phase = Phase.ACTIVE
        self.countdown.start()
        if self.policy.preload_all():
            self._preload_task = asyncio.ensure_future(self._preload())
        else:
            self._start_window(0)
        logger.info(
            "Session %s started: %s %s, %s windows of %s, %s policy",
            self.id,
            self.plan.test_kind.value,
            self.plan.subject or "",
            self.plan.window_count,
            self.plan.window_size,
            self.policy.name,
        )
        self._publish()

    async def wait_until_started(self) -> None:
        """
        Wait until the first question arrived or the session ended.

        Raises:
            SessionAborted: the first window produced no questions.
        """
        await self._started.wait()
        if self.phase is Phase.ABORTED:
            raise SessionAborted(self.error or "Session aborted")

    def _start_window(self, index: int) -> asyncio.Task[int]:
        task = self.loader.start(index)
        task.add_done_callback(lambda done: self._on_window_settled(index, done))
        return task

    async def _preload(self) -> None:
        for index in range(self.window_count):
            if not self.is_writable():
                break
            await asyncio.wait([self._start_window(index)])

    def _on_slots_changed(self) -> None:
        if not self._started.is_set() and any(
            self.slots[i].is_loaded for i in self.loader.window_range(0)
        ):
            self._started.set()
        self._publish()

    def _on_window_settled(self, index: int, task: asyncio.Task[int]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Window %s load crashed", index, exc_info=exc)
            self.loader.status(index).failure = str(exc)

        if index == 0 and self.loader.loaded_count(0) == 0 and self.is_writable():
            self._abort(self.loader.status(0).failure or "no questions available")
            return
        failure = self.loader.status(index).failure
        if failure and self.is_writable():
            logger.warning("Window %s of session %s is unavailable: %s", index, self.id, failure)
        self._publish()

    def _abort(self, reason: str) -> None:
        self.phase = Phase.ABORTED
        self.error = f"Could not start test: {reason}"
        self.countdown.stop()
        self.loader.cancel()
        if self._preload_task is not None:
            self._preload_task.cancel()
        self._started.set()
        logger.error("Session %s aborted: %s", self.id, reason)
        self._publish()

    # Commands

    def select_option(self, slot_index: int, option_index: int) -> None:
        self.answers.set_answer(slot_index, option_index)
        self._publish()

    def toggle_flag(self, slot_index: int) -> bool:
        flagged = self.flags.toggle(slot_index)
        self._publish()
        return flagged

    async def toggle_bookmark(self, slot_index: int) -> bool:
        """
        Save a slot's question to the candidate's bookmarks.
        Allowed during review as well; each slot is saved at most once.

        Returns:
            True if the bookmark was added, False if it already existed.
        """
        if self.phase in (Phase.INITIALIZING, Phase.ABORTED):
            raise SessionClosed("Session is not running")
        slot = check_slot(self.slots, slot_index)
        if slot_index in self.bookmarks:
            return False

        # Reserved before the sink call so concurrent toggles save once.
        self.bookmarks.add(slot_index)
        if self.bookmark_sink is not None:
            try:
                await self.bookmark_sink.add_bookmark(slot.question)
            except Exception as exc:
                self.bookmarks.discard(slot_index)
                if isinstance(exc, PersistenceFailure):
                    raise
                raise PersistenceFailure(f"Bookmark not saved: {exc}") from exc

        self._publish()
        return True

    async def advance_window(self) -> bool:
        """
        Move to the next window when the policy allows it.
        On the last window of a gated session this finishes the test.
        Returns False when the move is not permitted.
        """
        if not self.is_writable():
            return False

        if self.policy.can_advance(self):
            self.info.current_window_index += 1
            index = self.info.current_window_index
            if not self.policy.preload_all():
                self._start_window(index)
            logger.info("Session %s advanced to window %s", self.id, index)
            self._publish()
            return True

        if self.policy.can_finish(self):
            await self.submit()
            return True
        return False

    async def submit(self) -> ScoreResult:
        """
        Close the session and score it. Repeated calls return the first result.

        Raises:
            SessionAborted: the session never started.
        """
        if self._result is not None:
            return self._result
        if self.phase is Phase.ABORTED:
            raise SessionAborted(self.error or "Session aborted")

        self.phase = Phase.SUBMITTED
        self.info.submitted = True
        self.countdown.stop()
        self.loader.cancel()
        if self._preload_task is not None:
            self._preload_task.cancel()
        self.info.time_remaining_seconds = self.countdown.remaining

        result = score_session(self.slots, self.answers.answers)
        self._result = result
        self._started.set()
        logger.info(
            "Session %s submitted: %s/%s (%s%%)",
            self.id,
            result.score,
            result.total,
            result.accuracy,
        )

        self.phase = Phase.REVIEWING
        self._publish()
        await self._persist(result)
        return result

    async def _on_expire(self) -> None:
        if self._result is None and self.is_writable():
            logger.info("Time is up for session %s", self.id)
            await self.submit()

    async def _persist(self, result: ScoreResult) -> None:
        if self.attempt_sink is None:
            return
        elapsed = self._clock() - self.info.started_at_epoch_ms / 1000
        summary = AttemptSummary(
            test_kind=self.plan.test_kind,
            subject=self.plan.subject,
            score=result.score,
            total=result.total,
            duration_minutes=max(0, int(elapsed // 60)),
            by_subject=result.by_subject,
            window_index=self.info.current_window_index,
        )
        try:
            await self.attempt_sink.save_attempt(summary)
        except Exception as exc:
            self.persistence_error = str(exc)
            logger.warning("Attempt of session %s was not saved: %s", self.id, exc)
            self._publish()

    async def close(self) -> None:
        """Release the clock and in-flight loads; the session is discarded."""
        self.countdown.stop()
        self.loader.cancel()
        if self._preload_task is not None:
            self._preload_task.cancel()
        self._listeners.clear()
        logger.debug("Session %s closed in phase %s", self.id, self.phase.value)
