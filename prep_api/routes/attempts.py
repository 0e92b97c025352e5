"""Attempt history, progress, leaderboard and analytics endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session as DbSession

from prep_api.config import HISTORY_LIMIT, LEADERBOARD_LIMIT
from prep_api.database import get_db
from prep_api.dependencies.auth import get_current_user
from prep_api.models.attempts import (
    AnalyticsResponse,
    AttemptResponse,
    AttemptSaveRequest,
    LeaderboardEntry,
    ProgressResponse,
)
from prep_api.models.db.attempt import Attempt
from prep_api.models.db.user import User
from prep_api.services import attempt_service
from prep_api.utils import validate_subject

router = APIRouter(prefix="/api", tags=["attempts"])

Db = Annotated[DbSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]


@router.post("/tests/save", response_model=AttemptResponse, status_code=status.HTTP_201_CREATED)
def save_test(data: AttemptSaveRequest, user: CurrentUser, db: Db) -> Attempt:
    """Save a finished test taken outside a server-side session."""
    subject = validate_subject(data.subject) if data.test_type == "Subject" else None
    return attempt_service.save_attempt(
        db,
        user.id,
        data.test_type,
        data.score,
        data.total,
        duration_minutes=data.duration,
        subject=subject,
        window_index=data.windowIndex,
    )


@router.get("/tests/history", response_model=list[AttemptResponse])
def get_history(user: CurrentUser, db: Db) -> list[Attempt]:
    return attempt_service.get_history(db, user.id, HISTORY_LIMIT)


@router.get("/progress", response_model=ProgressResponse)
def get_progress(user: CurrentUser, db: Db) -> dict[str, object]:
    return attempt_service.get_progress(db, user.id)


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def get_leaderboard(user: CurrentUser, db: Db) -> list[dict[str, object]]:
    return attempt_service.get_leaderboard(db, LEADERBOARD_LIMIT)


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(user: CurrentUser, db: Db) -> dict[str, object]:
    """Per-subject accuracy with weak (<60%) and strong (>=80%) topics."""
    return attempt_service.get_analytics(db, user.id)
