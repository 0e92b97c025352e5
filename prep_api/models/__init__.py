"""Pydantic models."""
from prep_api.models.attempts import (
    AnalyticsResponse,
    AttemptResponse,
    AttemptSaveRequest,
    LeaderboardEntry,
    ProgressResponse,
    SubjectPerformance,
)
from prep_api.models.auth import (
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from prep_api.models.bookmarks import BookmarkCreate, BookmarkResponse
from prep_api.models.questions import (
    GenerateBankRequest,
    GeneratePoolRequest,
    QuestionPayload,
    SeedStaticRequest,
    StaticCount,
)
from prep_api.models.sessions import (
    AdvanceResponse,
    ReviewResponse,
    ScoreResponse,
    SelectOptionRequest,
    SessionResponse,
    SessionStartRequest,
    SlotResponse,
    ToggleResponse,
    WindowResponse,
)

__all__ = [
    "AdvanceResponse",
    "AnalyticsResponse",
    "AttemptResponse",
    "AttemptSaveRequest",
    "BookmarkCreate",
    "BookmarkResponse",
    "GenerateBankRequest",
    "GeneratePoolRequest",
    "LeaderboardEntry",
    "ProgressResponse",
    "QuestionPayload",
    "ReviewResponse",
    "ScoreResponse",
    "SeedStaticRequest",
    "SelectOptionRequest",
    "SessionResponse",
    "SessionStartRequest",
    "SlotResponse",
    "StaticCount",
    "SubjectPerformance",
    "TokenResponse",
    "ToggleResponse",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "WindowResponse",
]
