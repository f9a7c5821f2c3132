"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from datetime import datetime
import logging

from inkwell.database import get_db
from inkwell.dependencies.services import get_language_tool, get_llm_client, get_session_manager
from inkwell.models.schemas import HealthCheckResponse
from inkwell.services.language_tool import LanguageToolClient
from inkwell.services.llm_client import LLMClient
from inkwell.services.session_manager import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    language_tool: LanguageToolClient = Depends(get_language_tool),
    llm: LLMClient = Depends(get_llm_client),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with status of database, LanguageTool and the LLM key
    """
    # Check database connection
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "error"

    # Check LanguageTool connection
    lt_status = "ok" if await language_tool.check_health() else "error"

    # The LLM is optional; only Max mode and the assistant need it
    llm_status = "ok" if llm.api_key else "not_configured"

    overall_status = "healthy" if db_status == "ok" and lt_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        language_tool=lt_status,
        llm=llm_status,
        sessions=len(sessions),
        timestamp=datetime.utcnow(),
    )
