"""
User dictionary persistence.

Words are stored lower-cased, unique per (user, language).  Adding an
existing word returns the stored row instead of failing.
"""
from __future__ import annotations

import logging
from typing import List, Set, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.models.database_models import UserDictionaryWord

logger = logging.getLogger(__name__)


async def add_word(
    db: AsyncSession,
    user_id: str,
    word: str,
    language_code: str = "en",
) -> Tuple[UserDictionaryWord, bool]:
    """Return ``(row, created)``."""
    lower = word.strip().lower()
    result = await db.execute(
        select(UserDictionaryWord).where(
            UserDictionaryWord.user_id == user_id,
            UserDictionaryWord.language_code == language_code,
            UserDictionaryWord.word == lower,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        return existing, False

    row = UserDictionaryWord(user_id=user_id, word=lower, language_code=language_code)
    db.add(row)
    await db.flush()
    await db.refresh(row)
    logger.info("Added %r to dictionary of user %s (%s)", lower, user_id, language_code)
    return row, True


async def list_words(
    db: AsyncSession,
    user_id: str,
    language_code: str = "en",
) -> List[UserDictionaryWord]:
    result = await db.execute(
        select(UserDictionaryWord)
        .where(
            UserDictionaryWord.user_id == user_id,
            UserDictionaryWord.language_code == language_code,
        )
        .order_by(UserDictionaryWord.word)
    )
    return list(result.scalars().all())


async def load_word_set(db: AsyncSession, user_id: str, language_code: str = "en") -> Set[str]:
    return {row.word for row in await list_words(db, user_id, language_code)}


async def delete_word(
    db: AsyncSession,
    user_id: str,
    word: str,
    language_code: str = "en",
) -> bool:
    result = await db.execute(
        delete(UserDictionaryWord).where(
            UserDictionaryWord.user_id == user_id,
            UserDictionaryWord.language_code == language_code,
            UserDictionaryWord.word == word.strip().lower(),
        )
    )
    return (result.rowcount or 0) > 0
