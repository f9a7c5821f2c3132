"""
Editing session endpoints.

POST   /                              - open a session over text or paragraphs
GET    /{id}                          - document, live suggestions, decorations
DELETE /{id}                          - close the session
POST   /{id}/edits                    - apply a user edit; spans follow it
POST   /{id}/analyze                  - run an analysis pass now
GET    /{id}/decorations              - display spans only
POST   /{id}/suggestions/{sid}/apply  - accept a replacement
POST   /{id}/suggestions/{sid}/dismiss
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.config import settings
from inkwell.database import get_db
from inkwell.dependencies.auth import get_optional_user_id
from inkwell.dependencies.services import get_session_manager
from inkwell.models.schemas import (
    ApplyFixRequest,
    ApplyFixResponse,
    DecorationResponse,
    EditRequest,
    SessionCreateRequest,
    SessionResponse,
)
from inkwell.services import dictionary_store
from inkwell.services.session_manager import EditingSession, SessionManager, SessionNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_session(manager: SessionManager, session_id: str) -> EditingSession:
    try:
        return manager.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found.",
        )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreateRequest,
    db: AsyncSession = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    dictionary = set()
    if user_id:
        dictionary = await dictionary_store.load_word_set(
            db, user_id, settings.DEFAULT_LANGUAGE_CODE
        )

    session = manager.create(
        text=body.text,
        paragraphs=body.paragraphs,
        user_id=user_id,
        dictionary=dictionary,
        max_mode=body.max_mode,
        language=body.language,
    )
    if body.analyze:
        await session.analyse_now()
    return SessionResponse(**session.snapshot())


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    return SessionResponse(**_get_session(manager, session_id).snapshot())


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    try:
        manager.close(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Editing and analysis
# ---------------------------------------------------------------------------

@router.post("/{session_id}/edits", response_model=SessionResponse)
async def apply_edit(
    session_id: str,
    body: EditRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    """
    Replace document positions ``[from, to)`` with ``text``.

    Live suggestion spans are mapped through the edit before the response is
    built, so decorations never point at stale positions.
    """
    session = _get_session(manager, session_id)
    try:
        session.edit(body.from_, body.to, body.text, schedule=body.analyze)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return SessionResponse(**session.snapshot())


@router.post("/{session_id}/analyze", response_model=SessionResponse)
async def analyze_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    session = _get_session(manager, session_id)
    accepted = await session.analyse_now()
    if not accepted:
        logger.info("Session %s: analysis result superseded by a newer edit", session_id)
    return SessionResponse(**session.snapshot())


@router.get("/{session_id}/decorations", response_model=List[DecorationResponse])
async def get_decorations(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> List[DecorationResponse]:
    session = _get_session(manager, session_id)
    return [DecorationResponse(**d.to_dict()) for d in session.decorations()]


# ---------------------------------------------------------------------------
# Suggestion actions
# ---------------------------------------------------------------------------

@router.post(
    "/{session_id}/suggestions/{suggestion_id}/apply",
    response_model=ApplyFixResponse,
)
async def apply_suggestion(
    session_id: str,
    suggestion_id: str,
    body: ApplyFixRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> ApplyFixResponse:
    session = _get_session(manager, session_id)
    fix = session.apply_fix(suggestion_id, body.replacement)
    if fix is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Suggestion {suggestion_id} is no longer active.",
        )
    return ApplyFixResponse(
        applied=True,
        suggestion_id=fix.suggestion_id,
        from_=fix.from_,
        to=fix.to,
        original=fix.original,
        replacement=fix.replacement,
        delta=fix.delta,
        session=SessionResponse(**session.snapshot()),
    )


@router.post(
    "/{session_id}/suggestions/{suggestion_id}/dismiss",
    response_model=SessionResponse,
)
async def dismiss_suggestion(
    session_id: str,
    suggestion_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    session = _get_session(manager, session_id)
    if not session.dismiss(suggestion_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Suggestion {suggestion_id} is no longer active.",
        )
    return SessionResponse(**session.snapshot())
