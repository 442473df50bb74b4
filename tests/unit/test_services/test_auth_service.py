"""Tests for the authentication service module."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from address_admin.core.config import Settings
from address_admin.core.security import create_access_token, create_refresh_token, decode_token
from address_admin.schemas.auth import UserCreateRequest
from address_admin.services.auth_service import (
    authenticate_user,
    create_user,
    generate_tokens,
    list_users,
    refresh_access_token,
)

_SECRET = "test-secret-key-not-for-production"


def _mock_settings() -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key=_SECRET,
        jwt_access_token_expire_minutes=15,
    )


def _mock_user(**overrides: object) -> MagicMock:
    """Create a mock User object."""
    user = MagicMock()
    user.id = uuid.uuid4()
    user.username = "testuser"
    user.email = "test@example.com"
    user.hashed_password = "$2b$12$hashed"
    user.role = "user"
    user.is_active = True
    user.last_login_at = None
    user.created_at = datetime(2024, 1, 1, tzinfo=UTC)
    for key, value in overrides.items():
        setattr(user, key, value)
    return user


def _mock_session_with_result(scalar_result: object) -> AsyncMock:
    """Create mock session returning a specific scalar result."""
    session = AsyncMock()
    session.add = MagicMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar_result
    session.execute.return_value = result
    return session


class TestAuthenticateUser:
    """Tests for authenticate_user."""

    @pytest.mark.asyncio
    async def test_valid_credentials_returns_user(self) -> None:
        user = _mock_user()
        session = _mock_session_with_result(user)

        with patch("address_admin.services.auth_service.verify_password", return_value=True):
            result = await authenticate_user(session, "testuser", "password123")

        assert result is user
        assert user.last_login_at is not None
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_wrong_password_returns_none(self) -> None:
        session = _mock_session_with_result(_mock_user())
        with patch("address_admin.services.auth_service.verify_password", return_value=False):
            assert await authenticate_user(session, "testuser", "wrong") is None
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nonexistent_user_returns_none(self) -> None:
        session = _mock_session_with_result(None)
        assert await authenticate_user(session, "ghost", "password123") is None

    @pytest.mark.asyncio
    async def test_inactive_user_returns_none(self) -> None:
        session = _mock_session_with_result(_mock_user(is_active=False))
        with patch("address_admin.services.auth_service.verify_password", return_value=True):
            assert await authenticate_user(session, "testuser", "password123") is None


class TestCreateUser:
    """Tests for create_user."""

    @pytest.mark.asyncio
    async def test_creates_new_user(self) -> None:
        session = _mock_session_with_result(None)
        request = UserCreateRequest(username="newuser", email="new@example.com", password="password123")

        with patch("address_admin.services.auth_service.hash_password", return_value="hashed"):
            user = await create_user(session, request)

        assert user.username == "newuser"
        assert user.role == "user"
        assert user.hashed_password == "hashed"
        session.add.assert_called_once()
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_username_raises_error(self) -> None:
        session = _mock_session_with_result(_mock_user())
        request = UserCreateRequest(username="testuser", email="x@example.com", password="password123")

        with pytest.raises(ValueError, match="already exists"):
            await create_user(session, request)
        session.add.assert_not_called()


class TestListUsers:
    @pytest.mark.asyncio
    async def test_returns_users_and_count(self) -> None:
        users = [_mock_user(), _mock_user(username="other")]
        session = AsyncMock()
        count_result = MagicMock()
        count_result.scalar_one.return_value = 2
        list_result = MagicMock()
        list_result.scalars.return_value.all.return_value = users
        session.execute.side_effect = [count_result, list_result]

        result, total = await list_users(session, page=1, page_size=20)
        assert result == users
        assert total == 2


class TestGenerateTokens:
    def test_generates_access_and_refresh_tokens(self) -> None:
        settings = _mock_settings()
        tokens = generate_tokens(_mock_user(role="admin"), settings)

        assert tokens.expires_in == 15 * 60
        access = decode_token(tokens.access_token, _SECRET)
        refresh = decode_token(tokens.refresh_token, _SECRET)
        assert access["sub"] == "testuser"
        assert access["role"] == "admin"
        assert access["type"] == "access"
        assert refresh["type"] == "refresh"


class TestRefreshAccessToken:
    @pytest.mark.asyncio
    async def test_valid_refresh_token_returns_new_tokens(self) -> None:
        session = _mock_session_with_result(_mock_user())
        refresh = create_refresh_token("testuser", _SECRET)
        tokens = await refresh_access_token(session, refresh, _mock_settings())
        assert decode_token(tokens.access_token, _SECRET)["sub"] == "testuser"

    @pytest.mark.asyncio
    async def test_invalid_token_raises_error(self) -> None:
        session = _mock_session_with_result(None)
        with pytest.raises(ValueError, match="Invalid refresh token"):
            await refresh_access_token(session, "garbage", _mock_settings())

    @pytest.mark.asyncio
    async def test_access_token_rejected(self) -> None:
        session = _mock_session_with_result(_mock_user())
        access = create_access_token("testuser", "user", _SECRET)
        with pytest.raises(ValueError, match="not a refresh token"):
            await refresh_access_token(session, access, _mock_settings())

    @pytest.mark.asyncio
    async def test_inactive_user_raises_error(self) -> None:
        session = _mock_session_with_result(_mock_user(is_active=False))
        refresh = create_refresh_token("testuser", _SECRET)
        with pytest.raises(ValueError, match="not found or inactive"):
            await refresh_access_token(session, refresh, _mock_settings())
