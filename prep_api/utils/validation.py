"""Validation utilities."""
from fastapi import HTTPException

from prep_engine.blueprint import SUBJECTS


def validate_subject(subject: str | None) -> str:
    """Validate a subject name against the syllabus."""
    if not isinstance(subject, str) or not subject.strip():
        raise HTTPException(status_code=400, detail="subject is required")
    cleaned = subject.strip()
    if cleaned not in SUBJECTS:
        raise HTTPException(status_code=400, detail=f"Unknown subject: {cleaned}")
    return cleaned


def validate_slot(slot: int, total: int) -> int:
    """Validate a slot index of a session."""
    if not 0 <= slot < total:
        raise HTTPException(status_code=400, detail=f"Slot {slot} out of range")
    return slot
