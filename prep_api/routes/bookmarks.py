"""Bookmark endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session as DbSession

from prep_api.config import BOOKMARK_LIMIT
from prep_api.database import get_db
from prep_api.dependencies.auth import get_current_user
from prep_api.models.bookmarks import BookmarkCreate, BookmarkResponse
from prep_api.models.db.bookmark import Bookmark
from prep_api.models.db.user import User
from prep_api.services import bookmark_service

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])

Db = Annotated[DbSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]


@router.get("", response_model=list[BookmarkResponse])
def list_bookmarks(user: CurrentUser, db: Db) -> list[Bookmark]:
    return bookmark_service.list_bookmarks(db, user.id, BOOKMARK_LIMIT)


@router.post("", response_model=BookmarkResponse, status_code=status.HTTP_201_CREATED)
def add_bookmark(data: BookmarkCreate, user: CurrentUser, db: Db) -> Bookmark:
    return bookmark_service.add_bookmark(db, user.id, data.question_data.model_dump())


@router.delete("/{bookmark_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bookmark(bookmark_id: int, user: CurrentUser, db: Db) -> None:
    if not bookmark_service.delete_bookmark(db, user.id, bookmark_id):
        raise HTTPException(status_code=404, detail="Bookmark not found")
