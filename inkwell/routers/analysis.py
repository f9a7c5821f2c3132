"""
One-shot analysis endpoint.

POST /check - spelling/grammar (LanguageTool, or the LLM in Max mode), style
              findings and readability stats for a text.  When the caller
              sends X-User-Id, spelling hits on their dictionary words are
              filtered out.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.config import settings
from inkwell.database import get_db
from inkwell.dependencies.auth import get_optional_user_id
from inkwell.dependencies.services import get_analysis_service
from inkwell.models.schemas import AnalysisRequest, AnalysisResponse
from inkwell.services import dictionary_store
from inkwell.services.analysis import AnalysisService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/check", response_model=AnalysisResponse)
async def check_text(
    body: AnalysisRequest,
    db: AsyncSession = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    analysis: AnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse:
    dictionary = set()
    if user_id:
        dictionary = await dictionary_store.load_word_set(
            db, user_id, settings.DEFAULT_LANGUAGE_CODE
        )

    result = await analysis.analyse(
        body.text,
        dictionary=dictionary,
        max_mode=body.max_mode,
        language=body.language,
    )
    return AnalysisResponse(
        suggestions=[s.to_dict() for s in result.suggestions],
        stats=dataclasses.asdict(result.stats),
        errors=result.errors,
    )
