"""Tests for the health endpoint and request-id middleware."""
import pytest
from httpx import AsyncClient, ASGITransport

from greengrocer.main import app


@pytest.mark.asyncio
async def test_health_returns_200():
    """GET /health should return HTTP 200 with status ok."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_request_id_is_generated():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")
    assert response.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_request_id_is_echoed():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
