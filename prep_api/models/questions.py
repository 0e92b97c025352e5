"""Question Pydantic models."""
from pydantic import BaseModel, Field, field_validator


def normalize_difficulty(value: str) -> str:
    normalized = value.strip().capitalize()
    if normalized not in ("Easy", "Medium", "Hard"):
        raise ValueError("difficulty must be Easy, Medium or Hard")
    return normalized


class QuestionPayload(BaseModel):
    """A question in the wire format."""

    id: str | None = None
    text: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=4, max_length=4)
    correctAnswer: int = Field(..., ge=0, le=3)
    explanation: str = ""
    subject: str = Field(..., min_length=1)
    difficulty: str = "Medium"
    is_important: bool = False

    @field_validator("difficulty")
    @classmethod
    def _normalize_difficulty(cls, value: str) -> str:
        return normalize_difficulty(value)


class SeedStaticRequest(BaseModel):
    """Bulk insert into the static pool."""

    questions: list[QuestionPayload]


class GeneratePoolRequest(BaseModel):
    """Generate questions with the AI generator and store them as important."""

    subject: str
    count: int = Field(200, ge=1, le=500)


class GenerateBankRequest(BaseModel):
    """Generate questions at one difficulty for review; nothing is stored."""

    subject: str
    difficulty: str = "Medium"
    count: int = Field(10, ge=1, le=50)

    @field_validator("difficulty")
    @classmethod
    def _normalize_difficulty(cls, value: str) -> str:
        return normalize_difficulty(value)


class StaticCount(BaseModel):
    subject: str
    count: int
    important_count: int
