"""Bookmarked question model."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prep_api.database import Base

if TYPE_CHECKING:
    from prep_api.models.db.user import User


class Bookmark(Base):
    """A question snapshot saved by a candidate."""

    __tablename__ = "bookmarks"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="bookmarks")

    @property
    def question_data(self) -> dict[str, Any]:
        """Parse question snapshot from JSON."""
        try:
            return json.loads(self.question_json)
        except (json.JSONDecodeError, TypeError):
            return {}

    @question_data.setter
    def question_data(self, value: dict[str, Any]) -> None:
        """Serialize question snapshot to JSON."""
        self.question_json = json.dumps(value, ensure_ascii=False)
