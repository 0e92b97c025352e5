"""Data model of a test attempt."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

OPTION_COUNT = 4


class Difficulty(str, enum.Enum):
    """Question difficulty level."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class TestKind(str, enum.Enum):
    """Kind of test: full mock exam or single subject."""

    FULL = "Full"
    SUBJECT = "Subject"


class SlotState(str, enum.Enum):
    LOCKED = "locked"
    LOADED = "loaded"


class Phase(str, enum.Enum):
    """Lifecycle phase of a session."""

    INITIALIZING = "initializing"
    ACTIVE = "active"
    ABORTED = "aborted"
    SUBMITTED = "submitted"
    REVIEWING = "reviewing"


@dataclass(frozen=True)
class Question:
    """A multiple-choice question. Immutable once delivered."""

    text: str
    options: tuple[str, ...]
    correct_answer_index: int
    explanation: str
    subject: str
    difficulty: Difficulty = Difficulty.MEDIUM
    is_important: bool = False
    id: str | None = None

    def __post_init__(self) -> None:
        if len(self.options) != OPTION_COUNT:
            raise ValueError(f"Question needs exactly {OPTION_COUNT} options")
        if not 0 <= self.correct_answer_index < OPTION_COUNT:
            raise ValueError("correct_answer_index must be between 0 and 3")
        if not self.text.strip():
            raise ValueError("Question text is required")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Question":
        """
        Build a question from a generator or database payload.
        Accepts the camelCase keys of the wire format and snake_case keys.
        """
        if not isinstance(payload, dict):
            raise ValueError("Question payload must be an object")

        correct = payload.get("correctAnswer", payload.get("correct_answer_index"))
        if isinstance(correct, bool) or not isinstance(correct, int):
            raise ValueError("correctAnswer must be an integer")

        options = payload.get("options")
        if not isinstance(options, (list, tuple)):
            raise ValueError("options must be a list")

        important = payload.get("is_important", payload.get("isImportant", False))
        raw_id = payload.get("id")

        return cls(
            text=str(payload.get("text", "")),
            options=tuple(str(option) for option in options),
            correct_answer_index=correct,
            explanation=str(payload.get("explanation", "")),
            subject=str(payload.get("subject", "")),
            difficulty=Difficulty(str(payload.get("difficulty") or "Medium").strip().capitalize()),
            is_important=bool(important),
            id=str(raw_id) if raw_id is not None else None,
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the wire format used by the API and bookmarks."""
        payload: dict[str, Any] = {
            "text": self.text,
            "options": list(self.options),
            "correctAnswer": self.correct_answer_index,
            "explanation": self.explanation,
            "subject": self.subject,
            "difficulty": self.difficulty.value,
            "is_important": self.is_important,
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload


@dataclass
class QuestionSlot:
    """One addressable question position; Locked until its question arrives."""

    index: int
    question: Question | None = None

    @property
    def state(self) -> SlotState:
        return SlotState.LOCKED if self.question is None else SlotState.LOADED

    @property
    def is_loaded(self) -> bool:
        return self.question is not None

    def fill(self, question: Question) -> None:
        if self.question is not None:
            raise RuntimeError(f"Slot {self.index} is already loaded")
        self.question = question


@dataclass
class SessionInfo:
    test_kind: TestKind
    subject: str | None
    total_question_count: int
    window_size: int
    window_count: int
    started_at_epoch_ms: int
    time_remaining_seconds: int
    current_window_index: int = 0
    submitted: bool = False


@dataclass(frozen=True)
class AttemptSummary:
    """Attempt summary handed to the persistence collaborator."""

    test_kind: TestKind
    subject: str | None
    score: int
    total: int
    duration_minutes: int
    by_subject: dict[str, dict[str, int]] = field(default_factory=dict)
    window_index: int = 0
