"""Static question pool model."""
from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from prep_api.database import Base


class StaticQuestion(Base):
    """Curated or pre-generated question served as a fallback pool."""

    __tablename__ = "static_questions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    subject: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options_json: Mapped[str] = mapped_column(Text, nullable=False)
    correct_answer: Mapped[int] = mapped_column(nullable=False)
    explanation: Mapped[str] = mapped_column(Text, default="", nullable=False)
    difficulty: Mapped[str] = mapped_column(String(10), default="Medium", nullable=False)
    is_important: Mapped[bool] = mapped_column(default=False, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    @property
    def options(self) -> list[str]:
        """Parse options from JSON."""
        try:
            return json.loads(self.options_json)
        except (json.JSONDecodeError, TypeError):
            return []

    @options.setter
    def options(self, value: list[str]) -> None:
        """Serialize options to JSON."""
        self.options_json = json.dumps(list(value), ensure_ascii=False)

    def to_payload(self) -> dict[str, object]:
        """Question in the wire format."""
        return {
            "id": str(self.id),
            "text": self.text,
            "options": self.options,
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
            "subject": self.subject,
            "difficulty": self.difficulty,
            "is_important": self.is_important,
        }
