"""Test session Pydantic models."""
from pydantic import BaseModel, Field


class SessionStartRequest(BaseModel):
    """Start a test session."""

    test_type: str = Field(..., pattern="^(Full|Subject)$")
    subject: str | None = None
    policy: str | None = Field(None, pattern="^(gated|eager)$")


class SelectOptionRequest(BaseModel):
    slot: int = Field(..., ge=0)
    option: int = Field(..., ge=0, le=3)


class WindowResponse(BaseModel):
    index: int
    requested: bool
    loading: bool
    settled: bool
    loaded_count: int
    answered_count: int
    loaded: bool
    complete: bool
    failure: str | None = None


class SlotResponse(BaseModel):
    """A slot as shown to the candidate; answers are hidden until review."""

    index: int
    state: str
    question: dict[str, object] | None = None
    selected: int | None = None
    flagged: bool = False
    bookmarked: bool = False


class ScoreResponse(BaseModel):
    score: int
    total: int
    accuracy: int
    answered: int
    bySubject: dict[str, dict[str, int]]


class SessionResponse(BaseModel):
    """Snapshot of a test session."""

    id: str
    phase: str
    test_type: str
    subject: str | None
    total_question_count: int
    window_size: int
    window_count: int
    current_window_index: int
    started_at_epoch_ms: int
    time_remaining_seconds: int
    time_remaining_label: str
    submitted: bool
    can_advance: bool
    windows: list[WindowResponse]
    slots: list[SlotResponse]
    result: ScoreResponse | None = None
    error: str | None = None


class AdvanceResponse(BaseModel):
    advanced: bool
    session: SessionResponse


class ToggleResponse(BaseModel):
    slot: int
    value: bool


class ReviewResponse(BaseModel):
    """Correctness overlay after submission."""

    id: str
    result: ScoreResponse
    slots: list[dict[str, object]]
