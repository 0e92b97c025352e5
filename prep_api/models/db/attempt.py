"""
Completed test attempt records.
"""

from __future__ import annotations

import enum
import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prep_api.database import Base

if TYPE_CHECKING:
    from prep_api.models.db.user import User


class TestType(str, enum.Enum):
    """Kind of test taken."""

    FULL = "Full"
    SUBJECT = "Subject"


class Attempt(Base):
    """
    Summary of a finished test.
    Only the score survives a session; questions and answers are discarded.
    """

    __tablename__ = "test_attempts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    test_type: Mapped[str] = mapped_column(String(20), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    window_index: Mapped[int] = mapped_column(default=0, nullable=False)

    score: Mapped[int] = mapped_column(default=0, nullable=False)
    total: Mapped[int] = mapped_column(default=0, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(default=0, nullable=False)

    # Per-subject {"score", "total"} (stored as JSON string)
    breakdown_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    date: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="attempts")

    @property
    def breakdown(self) -> dict[str, Any]:
        """Parse per-subject breakdown from JSON."""
        if not self.breakdown_json:
            return {}
        try:
            return json.loads(self.breakdown_json)
        except (json.JSONDecodeError, TypeError):
            return {}

    @breakdown.setter
    def breakdown(self, value: dict[str, Any] | None) -> None:
        """Serialize breakdown to JSON."""
        self.breakdown_json = json.dumps(value) if value else None

    @property
    def accuracy(self) -> float:
        """Percentage of correct answers."""
        if self.total == 0:
            return 0.0
        return (self.score / self.total) * 100
