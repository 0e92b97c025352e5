"""Scoring of a session; pure functions over slots and answers."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence

from prep_engine.models import QuestionSlot

CORRECT = "correct"
INCORRECT = "incorrect"
UNANSWERED = "unanswered"
LOCKED = "locked"


@dataclass(frozen=True)
class ScoreResult:
    score: int
    total: int
    accuracy: int
    answered: int
    by_subject: dict[str, dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "score": self.score,
            "total": self.total,
            "accuracy": self.accuracy,
            "answered": self.answered,
            "bySubject": self.by_subject,
        }


def accuracy_percent(score: int, total: int) -> int:
    """Percentage rounded to the nearest integer, halves rounded up."""
    if total <= 0:
        return 0
    ratio = Decimal(score) * 100 / Decimal(total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score_session(
    slots: Sequence[QuestionSlot], answers: Mapping[int, int]
) -> ScoreResult:
    """
    Score the Loaded slots of a session.

    Locked slots were never answerable, so they are left out of ``total``
    instead of counting as wrong. Loaded but unanswered slots count as wrong.
    """
    score = 0
    total = 0
    answered = 0
    by_subject: dict[str, dict[str, int]] = {}

    for slot in slots:
        question = slot.question
        if question is None:
            continue
        total += 1
        stats = by_subject.setdefault(question.subject, {"score": 0, "total": 0})
        stats["total"] += 1

        choice = answers.get(slot.index)
        if choice is None:
            continue
        answered += 1
        if choice == question.correct_answer_index:
            score += 1
            stats["score"] += 1

    return ScoreResult(
        score=score,
        total=total,
        accuracy=accuracy_percent(score, total),
        answered=answered,
        by_subject=by_subject,
    )


def slot_outcome(slot: QuestionSlot, answers: Mapping[int, int]) -> str:
    if slot.question is None:
        return LOCKED
    choice = answers.get(slot.index)
    if choice is None:
        return UNANSWERED
    return CORRECT if choice == slot.question.correct_answer_index else INCORRECT


def review_slots(
    slots: Sequence[QuestionSlot], answers: Mapping[int, int]
) -> list[dict[str, object]]:
    """Correctness overlay for the review screen, one entry per slot."""
    overlay = []
    for slot in slots:
        entry: dict[str, object] = {
            "index": slot.index,
            "outcome": slot_outcome(slot, answers),
            "selected": answers.get(slot.index),
        }
        if slot.question is not None:
            entry["question"] = slot.question.to_payload()
        overlay.append(entry)
    return overlay
