"""Service layer for saved bookmarks."""
import asyncio
from typing import Any, Callable

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from prep_api.database import SessionLocal
from prep_api.models.db.bookmark import Bookmark
from prep_engine.errors import PersistenceFailure
from prep_engine.models import Question


def add_bookmark(db: DBSession, user_id: int, question_data: dict[str, Any]) -> Bookmark:
    bookmark = Bookmark(user_id=user_id)
    bookmark.question_data = question_data
    db.add(bookmark)
    db.commit()
    db.refresh(bookmark)
    return bookmark


def list_bookmarks(db: DBSession, user_id: int, limit: int = 200) -> list[Bookmark]:
    """Newest bookmarks first."""
    stmt = (
        select(Bookmark)
        .where(Bookmark.user_id == user_id)
        .order_by(desc(Bookmark.created_at), desc(Bookmark.id))
        .limit(limit)
    )
    return list(db.scalars(stmt))


def delete_bookmark(db: DBSession, user_id: int, bookmark_id: int) -> bool:
    """Delete a bookmark owned by the user. Returns False if not found."""
    bookmark = db.get(Bookmark, bookmark_id)
    if bookmark is None or bookmark.user_id != user_id:
        return False
    db.delete(bookmark)
    db.commit()
    return True


class DatabaseBookmarkSink:
    """Saves session questions to one user's bookmarks."""

    def __init__(
        self, user_id: int, session_factory: Callable[[], DBSession] = SessionLocal
    ) -> None:
        self.user_id = user_id
        self._session_factory = session_factory

    async def add_bookmark(self, question: Question) -> Bookmark:
        try:
            return await asyncio.to_thread(self._save, question.to_payload())
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Bookmark not saved: {e}") from e

    def _save(self, payload: dict[str, Any]) -> Bookmark:
        db = self._session_factory()
        try:
            return add_bookmark(db, self.user_id, payload)
        finally:
            db.close()
