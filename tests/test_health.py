"""Tests for GET /api/health and the root endpoint."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_returns_200(client: AsyncClient):
    resp = await client.get("/api/health/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["database"] == "ok"
    assert data["language_tool"] == "ok"
    assert data["llm"] == "ok"
    assert data["sessions"] == 0


@pytest.mark.asyncio
async def test_health_degraded_when_language_tool_down(client: AsyncClient, fake_language_tool):
    fake_language_tool.status_code = 503
    resp = await client.get("/api/health/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["language_tool"] == "error"


@pytest.mark.asyncio
async def test_health_counts_open_sessions(client: AsyncClient):
    await client.post("/api/sessions", json={"text": "One."})
    await client.post("/api/sessions", json={"text": "Two."})
    resp = await client.get("/api/health/")
    assert resp.json()["sessions"] == 2


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    resp = await client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Inkwell API"
    assert "X-Process-Time" in resp.headers
