"""Attempt-related Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AttemptSaveRequest(BaseModel):
    """Model for saving a finished test."""

    test_type: str = Field(..., pattern="^(Full|Subject)$")
    subject: str | None = None
    score: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    duration: int = Field(0, ge=0)
    windowIndex: int | None = Field(None, ge=0)


class AttemptResponse(BaseModel):
    """Model for an attempt in the history."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    test_type: str
    subject: str | None
    score: int
    total: int
    duration_minutes: int
    window_index: int
    date: datetime


class ProgressResponse(BaseModel):
    """Aggregated progress of a candidate."""

    total_tests: int
    total_score: int
    total_possible: int
    avg_accuracy: float
    subjects_completed: list[str]
    windows_completed: list[str]


class LeaderboardEntry(BaseModel):
    id: int
    name: str
    tests_taken: int
    total_score: int
    possible_score: int
    avg_accuracy: float


class SubjectPerformance(BaseModel):
    subject: str
    score: int
    total: int
    count: int
    accuracy: int


class AnalyticsResponse(BaseModel):
    """Per-subject performance with weak and strong topics."""

    subjects: list[SubjectPerformance]
    average_accuracy: int
    weak_topics: list[str]
    strong_topics: list[str]
