"""Tests for authentication endpoints."""
import uuid

import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock, MagicMock, patch

from greengrocer.core.deps import get_current_user
from greengrocer.core.security import create_access_token
from greengrocer.db.session import get_session
from greengrocer.main import app


# ─── Fixtures ─────────────────────────────────────────────────────────────────

USER_ID = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")


class FakeAccount:
    id = USER_ID
    email = "admin@example.com"
    password_hash = "$2b$12$placeholder"  # verify_password is mocked
    last_login_at = None


class FakeUser:
    """Minimal user stub returned by DB mock."""

    def __init__(self, status: str = "active", role: str = "admin"):
        self.id = USER_ID
        self.email = "admin@example.com"
        self.name = "Admin User"
        self.role = role
        self.status = status


def _session_returning_row(row):
    mock_result = MagicMock()
    mock_result.one_or_none.return_value = row
    mock_session = AsyncMock()
    mock_session.execute = AsyncMock(return_value=mock_result)
    mock_session.add = MagicMock()
    return mock_session


async def _post_login(mock_session, password: str = "changeme123"):
    async def override_get_session():
        yield mock_session

    app.dependency_overrides[get_session] = override_get_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            return await client.post(
                "/api/v1/auth/login",
                data={"username": "Admin@Example.com", "password": password},
            )
    finally:
        app.dependency_overrides.clear()


# ─── Login ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_login_valid_credentials_returns_jwt():
    """POST /api/v1/auth/login with valid credentials should return access_token."""
    mock_session = _session_returning_row((FakeAccount(), FakeUser()))

    with patch("greengrocer.api.v1.auth.verify_password", return_value=True):
        response = await _post_login(mock_session)

    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    mock_session.commit.assert_awaited()


@pytest.mark.asyncio
async def test_login_unknown_email_returns_401():
    mock_session = _session_returning_row(None)

    response = await _post_login(mock_session)

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_wrong_password_returns_401():
    mock_session = _session_returning_row((FakeAccount(), FakeUser()))

    with patch("greengrocer.api.v1.auth.verify_password", return_value=False):
        response = await _post_login(mock_session, password="wrong")

    assert response.status_code == 401
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_login_inactive_user_returns_403():
    mock_session = _session_returning_row((FakeAccount(), FakeUser(status="inactive")))

    with patch("greengrocer.api.v1.auth.verify_password", return_value=True):
        response = await _post_login(mock_session)

    assert response.status_code == 403


# ─── /me and role checks ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_me_without_token_returns_401():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_with_valid_token_returns_profile():
    """A valid token resolves to the profile row loaded by get_current_user."""
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = FakeUser()
    mock_session = AsyncMock()
    mock_session.execute = AsyncMock(return_value=mock_result)

    async def override_get_session():
        yield mock_session

    token = create_access_token(subject=str(USER_ID), role="admin")
    app.dependency_overrides[get_session] = override_get_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["email"] == "admin@example.com"
    assert response.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_non_admin_cannot_list_users():
    app.dependency_overrides[get_current_user] = lambda: FakeUser(role="driver")
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/users")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 403
