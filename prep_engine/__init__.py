"""Test session engine: windowed question delivery, answers, timing and scoring."""
from prep_engine.answers import AnswerTracker, BookmarkMark
from prep_engine.blueprint import TestPlan, plan_for
from prep_engine.controller import SessionController, SessionSnapshot
from prep_engine.countdown import Countdown
from prep_engine.errors import (
    GenerationFailure,
    PersistenceFailure,
    SessionAborted,
    SessionClosed,
    SessionError,
    SlotNotReady,
)
from prep_engine.models import (
    AttemptSummary,
    Difficulty,
    Phase,
    Question,
    QuestionSlot,
    SessionInfo,
    SlotState,
    TestKind,
)
from prep_engine.policy import EagerPolicy, GatedPolicy, WindowAdvancementPolicy, get_policy
from prep_engine.question_source import Batch, QuestionSource
from prep_engine.scoring import ScoreResult, review_slots, score_session
from prep_engine.window_loader import WindowLoader

__all__ = [
    "AnswerTracker",
    "AttemptSummary",
    "Batch",
    "BookmarkMark",
    "Countdown",
    "Difficulty",
    "EagerPolicy",
    "GatedPolicy",
    "GenerationFailure",
    "PersistenceFailure",
    "Phase",
    "Question",
    "QuestionSlot",
    "QuestionSource",
    "ScoreResult",
    "SessionAborted",
    "SessionClosed",
    "SessionController",
    "SessionError",
    "SessionInfo",
    "SessionSnapshot",
    "SlotNotReady",
    "SlotState",
    "TestKind",
    "TestPlan",
    "WindowAdvancementPolicy",
    "WindowLoader",
    "get_policy",
    "plan_for",
    "review_slots",
    "score_session",
]
