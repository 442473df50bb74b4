"""Tests for FastAPI dependencies: role checks and request context resolution."""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from address_admin.core.config import Settings
from address_admin.core.dependencies import (
    get_current_user,
    get_request_context,
    require_admin_role,
    require_role,
)
from address_admin.core.security import create_access_token, create_refresh_token
from address_admin.models.user import User


class TestRequireRole:
    """Tests for require_role factory."""

    @pytest.mark.asyncio
    async def test_admin_role_passes(self) -> None:
        checker = require_role("admin")
        user = MagicMock()
        user.role = "admin"

        result = await checker(current_user=user)
        assert result is user

    @pytest.mark.asyncio
    async def test_insufficient_role_raises_403(self) -> None:
        checker = require_role("admin")
        user = MagicMock()
        user.role = "user"

        with pytest.raises(HTTPException) as exc_info:
            await checker(current_user=user)
        assert exc_info.value.status_code == 403
        assert "user" in str(exc_info.value.detail)


class TestRequireAdminRole:
    """The admin dependency follows ``Settings.admin_role``."""

    @pytest.mark.asyncio
    async def test_default_admin_role(self, settings: Settings) -> None:
        user = MagicMock()
        user.role = "admin"
        assert await require_admin_role(current_user=user, settings=settings) is user

    @pytest.mark.asyncio
    async def test_configured_admin_role(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            database_url="sqlite+aiosqlite:///:memory:",
            jwt_secret_key="test-secret-key-not-for-production",
            admin_role="superuser",
        )
        superuser = MagicMock()
        superuser.role = "superuser"
        admin = MagicMock()
        admin.role = "admin"

        assert await require_admin_role(current_user=superuser, settings=settings) is superuser
        with pytest.raises(HTTPException) as exc_info:
            await require_admin_role(current_user=admin, settings=settings)
        assert exc_info.value.status_code == 403


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_valid_token(
        self, async_session: AsyncSession, settings: Settings, admin_user: User, admin_token: str
    ) -> None:
        user = await get_current_user(token=admin_token, session=async_session, settings=settings)
        assert user.id == admin_user.id

    @pytest.mark.asyncio
    async def test_invalid_token_raises_401(self, async_session: AsyncSession, settings: Settings) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token="not-a-jwt", session=async_session, settings=settings)
        assert exc_info.value.status_code == 401


class TestGetRequestContext:
    """The request context never raises; it carries a session or None."""

    @pytest.mark.asyncio
    async def test_no_token(self, async_session: AsyncSession, settings: Settings) -> None:
        context = await get_request_context(token=None, session=async_session, settings=settings)
        assert context.session is None
        assert context.policy.requires_admin("delete")

    @pytest.mark.asyncio
    async def test_valid_token_resolves_session(
        self, async_session: AsyncSession, settings: Settings, standard_user: User, user_token: str
    ) -> None:
        context = await get_request_context(token=user_token, session=async_session, settings=settings)
        assert context.session is not None
        assert context.session.user_id == standard_user.id
        assert context.session.username == "testuser"
        assert context.session.role == "user"

    @pytest.mark.asyncio
    async def test_role_comes_from_database_not_token(
        self, async_session: AsyncSession, settings: Settings, standard_user: User
    ) -> None:
        forged = create_access_token("testuser", "admin", settings.jwt_secret_key)
        context = await get_request_context(token=forged, session=async_session, settings=settings)
        assert context.session is not None
        assert context.session.role == "user"

    @pytest.mark.asyncio
    async def test_garbage_token(self, async_session: AsyncSession, settings: Settings) -> None:
        context = await get_request_context(token="garbage", session=async_session, settings=settings)
        assert context.session is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, async_session: AsyncSession, settings: Settings, admin_token: str) -> None:
        context = await get_request_context(token=admin_token, session=async_session, settings=settings)
        assert context.session is None

    @pytest.mark.asyncio
    async def test_inactive_user(
        self, async_session: AsyncSession, settings: Settings, standard_user: User, user_token: str
    ) -> None:
        standard_user.is_active = False
        await async_session.commit()
        context = await get_request_context(token=user_token, session=async_session, settings=settings)
        assert context.session is None

    @pytest.mark.asyncio
    async def test_refresh_token_not_accepted(
        self, async_session: AsyncSession, settings: Settings, standard_user: User
    ) -> None:
        refresh = create_refresh_token("testuser", settings.jwt_secret_key)
        context = await get_request_context(token=refresh, session=async_session, settings=settings)
        assert context.session is None
