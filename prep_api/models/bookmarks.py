"""Bookmark Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from prep_api.models.questions import QuestionPayload


class BookmarkCreate(BaseModel):
    question_data: QuestionPayload


class BookmarkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_data: dict[str, object]
    created_at: datetime
