"""API route modules."""
from prep_api.routes import attempts, auth, bookmarks, questions, sessions

__all__ = ["attempts", "auth", "bookmarks", "questions", "sessions"]
