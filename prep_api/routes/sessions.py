"""Test session endpoints: the candidate's side of the session engine."""
from contextlib import contextmanager
from typing import Annotated, Iterator

from fastapi import APIRouter, Depends, HTTPException, status

from prep_api.dependencies.auth import get_current_user
from prep_api.models.db.user import User
from prep_api.models.sessions import (
    AdvanceResponse,
    ReviewResponse,
    SelectOptionRequest,
    SessionResponse,
    SessionStartRequest,
    ToggleResponse,
)
from prep_api.services.session_registry import SessionNotFound, SessionRegistry, get_registry
from prep_api.utils import format_remaining, validate_slot, validate_subject
from prep_engine.controller import SessionController, SessionSnapshot
from prep_engine.errors import (
    PersistenceFailure,
    SessionAborted,
    SessionClosed,
    SlotNotReady,
)
from prep_engine.models import TestKind
from prep_engine.scoring import review_slots

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

Registry = Annotated[SessionRegistry, Depends(get_registry)]
CurrentUser = Annotated[User, Depends(get_current_user)]

HIDDEN_UNTIL_REVIEW = ("correctAnswer", "explanation")


@contextmanager
def engine_errors() -> Iterator[None]:
    """Translate engine exceptions into HTTP errors."""
    try:
        yield
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found") from None
    except SlotNotReady as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except SessionClosed as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except SessionAborted as e:
        raise HTTPException(status_code=502, detail=str(e)) from None
    except PersistenceFailure as e:
        raise HTTPException(status_code=503, detail=str(e)) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


def build_session_response(snapshot: SessionSnapshot) -> SessionResponse:
    """Serialize a snapshot; answers stay hidden until the session is submitted."""
    info = snapshot.info
    slots = []
    for index, question in enumerate(snapshot.slots):
        payload = None
        if question is not None:
            payload = question.to_payload()
            if not snapshot.is_submitted:
                for key in HIDDEN_UNTIL_REVIEW:
                    payload.pop(key, None)
        slots.append(
            {
                "index": index,
                "state": "locked" if question is None else "loaded",
                "question": payload,
                "selected": snapshot.answers.get(index),
                "flagged": index in snapshot.flags,
                "bookmarked": index in snapshot.bookmarks,
            }
        )

    return SessionResponse(
        id=snapshot.session_id,
        phase=snapshot.phase.value,
        test_type=info.test_kind.value,
        subject=info.subject,
        total_question_count=info.total_question_count,
        window_size=info.window_size,
        window_count=info.window_count,
        current_window_index=info.current_window_index,
        started_at_epoch_ms=info.started_at_epoch_ms,
        time_remaining_seconds=info.time_remaining_seconds,
        time_remaining_label=format_remaining(info.time_remaining_seconds),
        submitted=info.submitted,
        can_advance=snapshot.can_advance,
        windows=[
            {
                "index": w.index,
                "requested": w.requested,
                "loading": w.loading,
                "settled": w.settled,
                "loaded_count": w.loaded_count,
                "answered_count": w.answered_count,
                "loaded": w.loaded,
                "complete": w.complete,
                "failure": w.failure,
            }
            for w in snapshot.windows
        ],
        slots=slots,
        result=snapshot.result.to_dict() if snapshot.result else None,
        error=snapshot.error or snapshot.persistence_error,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    data: SessionStartRequest,
    user: CurrentUser,
    registry: Registry,
) -> SessionResponse:
    """Start a test; returns once the first question is available."""
    subject = None
    if data.test_type == TestKind.SUBJECT.value:
        subject = validate_subject(data.subject)

    with engine_errors():
        controller = await registry.create(user.id, data.test_type, subject, data.policy)
    return build_session_response(controller.snapshot())


def _controller(registry: SessionRegistry, session_id: str, user: User) -> SessionController:
    with engine_errors():
        return registry.get(session_id, user.id)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, user: CurrentUser, registry: Registry) -> SessionResponse:
    controller = _controller(registry, session_id, user)
    return build_session_response(controller.snapshot())


@router.post("/{session_id}/answers", response_model=SessionResponse)
async def select_option(
    session_id: str,
    data: SelectOptionRequest,
    user: CurrentUser,
    registry: Registry,
) -> SessionResponse:
    """Record the selected option of a slot."""
    controller = _controller(registry, session_id, user)
    validate_slot(data.slot, controller.info.total_question_count)
    with engine_errors():
        controller.select_option(data.slot, data.option)
    return build_session_response(controller.snapshot())


@router.post("/{session_id}/flags/{slot}", response_model=ToggleResponse)
async def toggle_flag(
    session_id: str, slot: int, user: CurrentUser, registry: Registry
) -> ToggleResponse:
    """Flag or unflag a slot for review."""
    controller = _controller(registry, session_id, user)
    validate_slot(slot, controller.info.total_question_count)
    with engine_errors():
        flagged = controller.toggle_flag(slot)
    return ToggleResponse(slot=slot, value=flagged)


@router.post("/{session_id}/bookmarks/{slot}", response_model=ToggleResponse)
async def bookmark_slot(
    session_id: str, slot: int, user: CurrentUser, registry: Registry
) -> ToggleResponse:
    """Save a slot's question to the candidate's bookmarks; works during review too."""
    controller = _controller(registry, session_id, user)
    validate_slot(slot, controller.info.total_question_count)
    with engine_errors():
        await controller.toggle_bookmark(slot)
    return ToggleResponse(slot=slot, value=True)


@router.post("/{session_id}/advance", response_model=AdvanceResponse)
async def advance_window(
    session_id: str, user: CurrentUser, registry: Registry
) -> AdvanceResponse:
    """Unlock the next window, or finish a gated test from its last window."""
    controller = _controller(registry, session_id, user)
    advanced = await controller.advance_window()
    return AdvanceResponse(
        advanced=advanced, session=build_session_response(controller.snapshot())
    )


@router.post("/{session_id}/submit", response_model=SessionResponse)
async def submit_session(
    session_id: str, user: CurrentUser, registry: Registry
) -> SessionResponse:
    controller = _controller(registry, session_id, user)
    with engine_errors():
        await controller.submit()
    return build_session_response(controller.snapshot())


@router.get("/{session_id}/review", response_model=ReviewResponse)
async def review_session(
    session_id: str, user: CurrentUser, registry: Registry
) -> ReviewResponse:
    """Correctness overlay with explanations, available once submitted."""
    controller = _controller(registry, session_id, user)
    if controller.result is None:
        raise HTTPException(status_code=409, detail="Session is not submitted yet")
    return ReviewResponse(
        id=controller.id,
        result=controller.result.to_dict(),
        slots=review_slots(controller.slots, controller.answers.answers),
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_session(session_id: str, user: CurrentUser, registry: Registry) -> None:
    """Leave the session; everything not yet persisted is discarded."""
    with engine_errors():
        await registry.discard(session_id, user.id)
