"""Static question pool stored in the database."""
import asyncio
import logging
from typing import Any, Callable, Iterable

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from prep_api.database import SessionLocal
from prep_api.models.db.static_question import StaticQuestion
from prep_engine.models import Question

logger = logging.getLogger(__name__)


def sample_static(db: DbSession, subject: str, limit: int) -> list[StaticQuestion]:
    """Random sample of a subject's static questions."""
    if limit <= 0:
        return []
    stmt = (
        select(StaticQuestion)
        .where(StaticQuestion.subject == subject)
        .order_by(func.random())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def list_important(db: DbSession, limit: int) -> list[StaticQuestion]:
    """Questions flagged as important, random order."""
    stmt = (
        select(StaticQuestion)
        .where(StaticQuestion.is_important.is_(True))
        .order_by(func.random())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def add_questions(db: DbSession, questions: Iterable[dict[str, Any]]) -> int:
    """
    Insert question payloads into the pool.

    Payloads are validated through the engine's Question model;
    an invalid payload raises ValueError and nothing is inserted.
    """
    rows = []
    for payload in questions:
        question = Question.from_payload(payload)
        row = StaticQuestion(
            subject=question.subject,
            text=question.text,
            correct_answer=question.correct_answer_index,
            explanation=question.explanation,
            difficulty=question.difficulty.value,
            is_important=question.is_important,
        )
        row.options = list(question.options)
        rows.append(row)

    db.add_all(rows)
    db.commit()
    return len(rows)


def count_by_subject(db: DbSession) -> list[dict[str, Any]]:
    """Pool size per subject, with how many are flagged important."""
    stmt = (
        select(
            StaticQuestion.subject,
            func.count(StaticQuestion.id),
            func.sum(case((StaticQuestion.is_important.is_(True), 1), else_=0)),
        )
        .group_by(StaticQuestion.subject)
        .order_by(StaticQuestion.subject)
    )
    return [
        {"subject": subject, "count": count, "important_count": int(important or 0)}
        for subject, count, important in db.execute(stmt)
    ]


def to_question(row: StaticQuestion) -> Question | None:
    try:
        return Question.from_payload(row.to_payload())
    except ValueError as e:
        logger.warning("Skipping malformed static question %s: %s", row.id, e)
        return None


class DatabaseStaticStore:
    """Static pool adapter for the question source; never raises."""

    def __init__(self, session_factory: Callable[[], DbSession] = SessionLocal) -> None:
        self._session_factory = session_factory

    async def get_static_questions(self, subject: str, limit: int) -> list[Question]:
        try:
            return await asyncio.to_thread(self._load, subject, limit)
        except SQLAlchemyError as e:
            logger.error("Static pool unavailable for %s: %s", subject, e)
            return []

    def _load(self, subject: str, limit: int) -> list[Question]:
        db = self._session_factory()
        try:
            rows = sample_static(db, subject, limit)
            questions = [to_question(row) for row in rows]
            return [question for question in questions if question is not None]
        finally:
            db.close()
