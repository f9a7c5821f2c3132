"""
Shared fixtures for Inkwell backend tests.

The database is a throwaway SQLite file (aiosqlite) created per test; the
LanguageTool, LLM and OpenAlex APIs are replaced by httpx.MockTransport
handlers from tests/fakes.py.  Service objects normally built in the app
lifespan are attached to ``app.state`` by the ``client`` fixture.
"""
from __future__ import annotations

import os
import tempfile
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Override DATABASE_URL *before* any inkwell module is imported, so that
# settings.DATABASE_URL and the global engine point at the test DB.
TEST_DATABASE_PATH = os.path.join(tempfile.gettempdir(), "inkwell_test.db")
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{TEST_DATABASE_PATH}",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from inkwell.database import Base, get_db  # noqa: E402
from inkwell.main import app  # noqa: E402
from inkwell.models import database_models  # noqa: E402,F401
from inkwell.services.analysis import AnalysisService  # noqa: E402
from inkwell.services.language_tool import LanguageToolClient  # noqa: E402
from inkwell.services.llm_client import LLMClient  # noqa: E402
from inkwell.services.session_manager import SessionManager  # noqa: E402
from inkwell.services.writing_assistant import WritingAssistant  # noqa: E402
from inkwell.utils.cache import ResponseCache  # noqa: E402
from tests.fakes import FakeLanguageTool, FakeLLM, FakeOpenAlex  # noqa: E402


# ---------------------------------------------------------------------------
# Upstream fakes
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_language_tool() -> FakeLanguageTool:
    return FakeLanguageTool()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_openalex() -> FakeOpenAlex:
    return FakeOpenAlex()


@pytest.fixture
def language_tool(fake_language_tool: FakeLanguageTool) -> LanguageToolClient:
    return LanguageToolClient(
        base_url="http://languagetool.test/v2/check",
        transport=httpx.MockTransport(fake_language_tool),
    )


@pytest.fixture
def llm_client(fake_llm: FakeLLM) -> LLMClient:
    return LLMClient(
        cache=ResponseCache(),
        api_key="test-key",
        base_url="http://llm.test/v1/chat/completions",
        transport=httpx.MockTransport(fake_llm),
    )


@pytest.fixture
def assistant(llm_client: LLMClient, fake_openalex: FakeOpenAlex) -> WritingAssistant:
    return WritingAssistant(llm_client, openalex_transport=httpx.MockTransport(fake_openalex))


@pytest.fixture
def analysis_service(language_tool: LanguageToolClient, assistant: WritingAssistant) -> AnalysisService:
    return AnalysisService(language_tool, assistant=assistant)


@pytest.fixture
def session_manager(analysis_service: AnalysisService) -> SessionManager:
    return SessionManager(analysis_service, quiescence_seconds=0.01)


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a DB session for each test. Tables are created before the test
    and dropped afterwards so each test starts with a clean slate.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    session_manager: SessionManager,
    analysis_service: AnalysisService,
    assistant: WritingAssistant,
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB dependency
    overridden to use the per-test session and fake upstream services.
    """

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.state.cache = assistant.cache
    app.state.assistant = assistant
    app.state.analysis = analysis_service
    app.state.sessions = session_manager

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    session_manager.close_all()
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

AUTH_HEADERS = {"X-User-Id": "test-user-1"}

AUTH_HEADERS_USER2 = {"X-User-Id": "test-user-2"}
