"""Database models."""
from prep_api.models.db.user import User
from prep_api.models.db.attempt import Attempt, TestType
from prep_api.models.db.bookmark import Bookmark
from prep_api.models.db.static_question import StaticQuestion

__all__ = [
    "User",
    "Attempt",
    "TestType",
    "Bookmark",
    "StaticQuestion",
]
