"""Service layer for completed attempts using the SQL database."""
import asyncio
import logging
from typing import Any, Callable

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from prep_api.database import SessionLocal
from prep_api.models.db.attempt import Attempt, TestType
from prep_api.models.db.user import User
from prep_engine.errors import PersistenceFailure
from prep_engine.models import AttemptSummary
from prep_engine.scoring import accuracy_percent

logger = logging.getLogger(__name__)

WEAK_THRESHOLD = 60
STRONG_THRESHOLD = 80


def save_attempt(
    db: DBSession,
    user_id: int,
    test_type: str,
    score: int,
    total: int,
    duration_minutes: int = 0,
    subject: str | None = None,
    window_index: int | None = None,
    breakdown: dict[str, Any] | None = None,
) -> Attempt:
    """Record a finished test."""
    attempt = Attempt(
        user_id=user_id,
        test_type=TestType(test_type).value,
        subject=subject,
        window_index=window_index or 0,
        score=score,
        total=total,
        duration_minutes=duration_minutes,
    )
    attempt.breakdown = breakdown

    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    logger.info(
        "Saved %s attempt for user %s: %s/%s", attempt.test_type, user_id, score, total
    )
    return attempt


def get_history(db: DBSession, user_id: int, limit: int = 100) -> list[Attempt]:
    """Most recent attempts first."""
    stmt = (
        select(Attempt)
        .where(Attempt.user_id == user_id)
        .order_by(desc(Attempt.date), desc(Attempt.id))
        .limit(limit)
    )
    return list(db.scalars(stmt))


def get_progress(db: DBSession, user_id: int) -> dict[str, Any]:
    """Aggregate totals over all attempts of a user."""
    attempts = list(db.scalars(select(Attempt).where(Attempt.user_id == user_id)))

    total_score = sum(a.score for a in attempts)
    total_possible = sum(a.total for a in attempts)
    subjects = sorted({a.subject for a in attempts if a.subject})
    windows = sorted({f"{a.test_type}_{a.window_index}" for a in attempts})

    return {
        "total_tests": len(attempts),
        "total_score": total_score,
        "total_possible": total_possible,
        "avg_accuracy": (total_score / total_possible * 100) if total_possible else 0.0,
        "subjects_completed": subjects,
        "windows_completed": windows,
    }


def get_leaderboard(db: DBSession, limit: int = 50) -> list[dict[str, Any]]:
    """Users ranked by overall accuracy, then by total score."""
    total_score = func.sum(Attempt.score)
    possible = func.sum(Attempt.total)
    stmt = (
        select(
            User.id,
            User.name,
            func.count(Attempt.id),
            total_score,
            possible,
        )
        .join(Attempt, Attempt.user_id == User.id)
        .group_by(User.id, User.name)
    )

    entries = []
    for user_id, name, taken, score, total in db.execute(stmt):
        score = int(score or 0)
        total = int(total or 0)
        entries.append(
            {
                "id": user_id,
                "name": name,
                "tests_taken": taken,
                "total_score": score,
                "possible_score": total,
                "avg_accuracy": (score / total * 100) if total else 0.0,
            }
        )

    entries.sort(key=lambda e: (-e["avg_accuracy"], -e["total_score"]))
    return entries[:limit]


def get_analytics(db: DBSession, user_id: int) -> dict[str, Any]:
    """
    Per-subject performance across all attempts.

    Full tests contribute through their stored per-subject breakdown,
    subject tests through their subject.
    """
    stats: dict[str, dict[str, int]] = {}
    for attempt in db.scalars(select(Attempt).where(Attempt.user_id == user_id)):
        breakdown = attempt.breakdown
        if not breakdown and attempt.subject:
            breakdown = {attempt.subject: {"score": attempt.score, "total": attempt.total}}
        for subject, values in breakdown.items():
            entry = stats.setdefault(subject, {"score": 0, "total": 0, "count": 0})
            entry["score"] += int(values.get("score", 0))
            entry["total"] += int(values.get("total", 0))
            entry["count"] += 1

    subjects = [
        {
            "subject": subject,
            **values,
            "accuracy": accuracy_percent(values["score"], values["total"]),
        }
        for subject, values in sorted(stats.items())
    ]
    average = round(sum(s["accuracy"] for s in subjects) / len(subjects)) if subjects else 0

    return {
        "subjects": subjects,
        "average_accuracy": average,
        "weak_topics": [s["subject"] for s in subjects if s["accuracy"] < WEAK_THRESHOLD],
        "strong_topics": [
            s["subject"] for s in subjects if s["accuracy"] >= STRONG_THRESHOLD
        ],
    }


class DatabaseAttemptSink:
    """Persists a submitted session's summary for one user."""

    def __init__(
        self,
        user_id: int,
        session_factory: Callable[[], DBSession] = SessionLocal,
    ) -> None:
        self.user_id = user_id
        self._session_factory = session_factory

    async def save_attempt(self, summary: AttemptSummary) -> Attempt:
        try:
            return await asyncio.to_thread(self._save, summary)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Attempt not saved: {e}") from e

    def _save(self, summary: AttemptSummary) -> Attempt:
        db = self._session_factory()
        try:
            return save_attempt(
                db,
                self.user_id,
                summary.test_kind.value,
                summary.score,
                summary.total,
                duration_minutes=summary.duration_minutes,
                subject=summary.subject,
                window_index=summary.window_index,
                breakdown=summary.by_subject,
            )
        finally:
            db.close()
