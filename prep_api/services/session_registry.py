"""
In-memory registry of running test sessions.

Controllers live on the server's event loop; only their attempt summaries
and bookmarks reach the database.
"""
import logging
import time
from dataclasses import dataclass, field

from prep_api.config import GENERATION_BATCH_SIZE, STATIC_BLEND, WINDOW_POLICY
from prep_api.services.attempt_service import DatabaseAttemptSink
from prep_api.services.bookmark_service import DatabaseBookmarkSink
from prep_api.services.generation_service import AnthropicQuestionGenerator
from prep_api.services.static_question_service import DatabaseStaticStore
from prep_engine.blueprint import plan_for
from prep_engine.controller import SessionController
from prep_engine.errors import SessionAborted
from prep_engine.policy import get_policy
from prep_engine.question_source import QuestionGenerator, QuestionSource, StaticQuestionStore

logger = logging.getLogger(__name__)


class SessionNotFound(LookupError):
    """No running session with that id for that user."""


@dataclass
class RegisteredSession:
    user_id: int
    controller: SessionController
    last_access: float = field(default_factory=time.monotonic)


class SessionRegistry:
    """Owns the session controllers of every user."""

    def __init__(
        self,
        generator: QuestionGenerator | None = None,
        static_store: StaticQuestionStore | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        self.generator = generator or AnthropicQuestionGenerator()
        self.static_store = static_store or DatabaseStaticStore()
        self.tick_interval = tick_interval
        self._sessions: dict[str, RegisteredSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def create(
        self,
        user_id: int,
        test_type: str,
        subject: str | None = None,
        policy: str | None = None,
    ) -> SessionController:
        """
        Start a session and wait for its first question.

        Raises:
            ValueError: unknown test type, subject or policy.
            SessionAborted: the first window could not be loaded.
        """
        plan = plan_for(test_type, subject)
        controller = SessionController(
            plan,
            QuestionSource(
                self.generator,
                self.static_store,
                batch_size=GENERATION_BATCH_SIZE,
                static_blend=STATIC_BLEND,
            ),
            policy=get_policy(policy or WINDOW_POLICY),
            attempt_sink=DatabaseAttemptSink(user_id),
            bookmark_sink=DatabaseBookmarkSink(user_id),
            tick_interval=self.tick_interval,
        )
        self._sessions[controller.id] = RegisteredSession(user_id, controller)

        await controller.start()
        try:
            await controller.wait_until_started()
        except SessionAborted:
            await self.discard(controller.id, user_id)
            raise
        return controller

    def get(self, session_id: str, user_id: int) -> SessionController:
        """
        Raises:
            SessionNotFound: unknown id, or the session belongs to someone else.
        """
        entry = self._sessions.get(session_id)
        if entry is None or entry.user_id != user_id:
            raise SessionNotFound(session_id)
        entry.last_access = time.monotonic()
        return entry.controller

    async def discard(self, session_id: str, user_id: int) -> None:
        controller = self.get(session_id, user_id)
        del self._sessions[session_id]
        await controller.close()

    async def purge_stale(self, max_idle_seconds: float) -> int:
        """Close sessions nobody touched for ``max_idle_seconds``."""
        cutoff = time.monotonic() - max_idle_seconds
        stale = [sid for sid, entry in self._sessions.items() if entry.last_access < cutoff]
        for session_id in stale:
            entry = self._sessions.pop(session_id)
            await entry.controller.close()
        if stale:
            logger.info("Purged %s stale sessions", len(stale))
        return len(stale)

    async def close_all(self) -> None:
        for entry in self._sessions.values():
            await entry.controller.close()
        self._sessions.clear()


registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    """FastAPI dependency returning the process-wide registry."""
    return registry
