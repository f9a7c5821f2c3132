"""
Main FastAPI application for the Inkwell backend.
Handles CORS, request logging middleware, lifespan events, and router registration.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inkwell.config import settings
from inkwell.database import close_db, init_db
from inkwell.routers import analysis, assistant, dictionary, health, sessions
from inkwell.services.analysis import AnalysisService
from inkwell.services.language_tool import LanguageToolClient
from inkwell.services.llm_client import LLMClient
from inkwell.services.session_manager import SessionManager
from inkwell.services.writing_assistant import WritingAssistant
from inkwell.utils.cache import ResponseCache

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Startup / shutdown helpers
# ---------------------------------------------------------------------------

async def _check_database() -> bool:
    """Initialise DB tables and verify the connection.  Returns True on success."""
    try:
        await init_db()
        logger.info("✓ Database connection OK")
        return True
    except Exception as exc:
        logger.error("✗ Database connection failed: %s", exc)
        raise


async def _check_language_tool(client: LanguageToolClient) -> bool:
    """Never raises; spelling and grammar checks degrade to style-only when down."""
    reachable = await client.check_health()
    if reachable:
        logger.info("✓ LanguageTool reachable at %s", client.base_url)
    else:
        logger.warning(
            "⚠ LanguageTool unreachable at %s; analysis will report style findings only",
            client.base_url,
        )
    return reachable


def build_services(app: FastAPI) -> None:
    """Create the long-lived service objects and attach them to ``app.state``."""
    cache = ResponseCache()
    llm = LLMClient(cache=cache)
    writing_assistant = WritingAssistant(llm, cache=cache)
    analysis_service = AnalysisService(LanguageToolClient(), assistant=writing_assistant)

    app.state.cache = cache
    app.state.assistant = writing_assistant
    app.state.analysis = analysis_service
    app.state.sessions = SessionManager(analysis_service)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting Inkwell backend …")
    logger.info("=" * 60)

    # 1 - Database (required; raises on failure)
    await _check_database()

    # 2 - Services
    build_services(app)

    # 3 - LanguageTool (optional; logs warnings but continues)
    await _check_language_tool(app.state.analysis.language_tool)

    if not settings.AI_API_KEY:
        logger.warning("⚠ AI_API_KEY is not set; Max mode and assistant features are disabled")

    logger.info("=" * 60)
    logger.info("  Inkwell backend ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("  Health     : http://%s:%d/api/health", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down Inkwell backend …")
    app.state.sessions.close_all()
    await close_db()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Inkwell API",
    description=(
        "**Inkwell** is a writing assistant backend for academic prose.\n\n"
        "Open an editing session, stream edits, and receive spelling, grammar "
        "and style suggestions whose highlighted spans follow the text as it "
        "changes.\n\n"
        "Key endpoints:\n"
        "- `POST /api/sessions` - open an editing session\n"
        "- `POST /api/sessions/{id}/edits` - apply an edit\n"
        "- `POST /api/sessions/{id}/suggestions/{sid}/apply` - accept a fix\n"
        "- `POST /api/analysis/check` - one-shot analysis\n"
        "- `POST /api/assistant/research` - tone, citations and slides\n"
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health", "/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.utcnow().isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,     prefix="/api/health",     tags=["Health"])
app.include_router(analysis.router,   prefix="/api/analysis",   tags=["Analysis"])
app.include_router(sessions.router,   prefix="/api/sessions",   tags=["Sessions"])
app.include_router(dictionary.router, prefix="/api/dictionary", tags=["Dictionary"])
app.include_router(assistant.router,  prefix="/api/assistant",  tags=["Assistant"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root: basic service info."""
    return {
        "name": "Inkwell API",
        "version": "0.1.0",
        "description": "Academic Writing Assistant Backend",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "analysis": "/api/analysis/check",
            "sessions": "/api/sessions",
            "dictionary": "/api/dictionary",
            "assistant": "/api/assistant",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "inkwell.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
