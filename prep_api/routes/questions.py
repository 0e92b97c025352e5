"""Static question pool endpoints."""
import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session as DbSession

from prep_api.config import GENERATION_BATCH_SIZE, IMPORTANT_POOL_LIMIT, STATIC_SAMPLE_SIZE
from prep_api.database import get_db
from prep_api.dependencies.auth import get_current_user
from prep_api.models.db.user import User
from prep_api.models.questions import (
    GenerateBankRequest,
    GeneratePoolRequest,
    SeedStaticRequest,
    StaticCount,
)
from prep_api.services import static_question_service
from prep_api.services.generation_service import generate_important_pool
from prep_api.services.session_registry import SessionRegistry, get_registry
from prep_api.utils import validate_subject
from prep_engine.errors import GenerationFailure

router = APIRouter(prefix="/api", tags=["questions"])

Db = Annotated[DbSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]


@router.get("/questions/important")
def get_important_questions(db: Db) -> list[dict[str, object]]:
    rows = static_question_service.list_important(db, IMPORTANT_POOL_LIMIT)
    return [row.to_payload() for row in rows]


@router.get("/questions/static/{subject}")
def get_static_questions(subject: str, db: Db) -> list[dict[str, object]]:
    """Random sample of a subject's static pool."""
    subject = validate_subject(subject)
    rows = static_question_service.sample_static(db, subject, STATIC_SAMPLE_SIZE)
    return [row.to_payload() for row in rows]


@router.post("/admin/seed-static", status_code=status.HTTP_201_CREATED)
def seed_static(data: SeedStaticRequest, user: CurrentUser, db: Db) -> dict[str, int]:
    for question in data.questions:
        validate_subject(question.subject)
    try:
        inserted = static_question_service.add_questions(
            db, [question.model_dump() for question in data.questions]
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return {"inserted": inserted}


@router.get("/admin/static-count", response_model=list[StaticCount])
def static_count(user: CurrentUser, db: Db) -> list[dict[str, object]]:
    return static_question_service.count_by_subject(db)


@router.post("/admin/generate-important-pool", status_code=status.HTTP_201_CREATED)
async def generate_pool(
    data: GeneratePoolRequest,
    user: CurrentUser,
    db: Db,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> dict[str, int]:
    """Generate important questions for a subject and add them to the static pool."""
    subject = validate_subject(data.subject)
    try:
        questions = await generate_important_pool(
            registry.generator, subject, data.count, GENERATION_BATCH_SIZE
        )
    except GenerationFailure as e:
        raise HTTPException(status_code=502, detail=str(e)) from None

    inserted = await asyncio.to_thread(
        static_question_service.add_questions,
        db,
        [question.to_payload() for question in questions],
    )
    return {"inserted": inserted}


@router.post("/admin/generate-bank")
async def generate_bank(
    data: GenerateBankRequest,
    user: CurrentUser,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> list[dict[str, object]]:
    """
    Generate questions at one difficulty for an admin to review.
    Nothing is stored; accepted questions go through seed-static.
    """
    subject = validate_subject(data.subject)
    try:
        questions = await registry.generator.generate_bank(subject, data.difficulty, data.count)
    except GenerationFailure as e:
        raise HTTPException(status_code=502, detail=str(e)) from None
    return [question.to_payload() for question in questions]
