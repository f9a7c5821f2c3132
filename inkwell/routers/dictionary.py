"""
Personal dictionary endpoints.  All routes require the X-User-Id header.

GET    /?lang=en  - list the user's words
POST   /          - add a word (idempotent)
DELETE /          - remove a word
"""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.config import settings
from inkwell.database import get_db
from inkwell.dependencies.auth import get_current_user_id
from inkwell.models.schemas import (
    DictionaryMutationResponse,
    DictionaryWordCreate,
    DictionaryWordResponse,
)
from inkwell.services import dictionary_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[DictionaryWordResponse])
async def list_dictionary(
    lang: str = Query(settings.DEFAULT_LANGUAGE_CODE, min_length=2, max_length=16),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> List[DictionaryWordResponse]:
    rows = await dictionary_store.list_words(db, user_id, lang)
    return [DictionaryWordResponse.model_validate(row) for row in rows]


@router.post("", response_model=DictionaryMutationResponse)
async def add_to_dictionary(
    body: DictionaryWordCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> DictionaryMutationResponse:
    word = body.word.strip()
    if not word:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Word must not be blank.",
        )

    row, created = await dictionary_store.add_word(db, user_id, word, body.language_code)
    return DictionaryMutationResponse(
        message="Word added to dictionary" if created else "Word already in dictionary",
        data=DictionaryWordResponse.model_validate(row),
    )


@router.delete("", response_model=DictionaryMutationResponse)
async def remove_from_dictionary(
    word: str = Query(..., min_length=1, max_length=255),
    lang: str = Query(settings.DEFAULT_LANGUAGE_CODE, min_length=2, max_length=16),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> DictionaryMutationResponse:
    deleted = await dictionary_store.delete_word(db, user_id, word, lang)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"'{word}' is not in your dictionary.",
        )
    return DictionaryMutationResponse(message="Word removed from dictionary")
