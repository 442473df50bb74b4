"""Shared test fixtures for async database, sessions, users, addresses and auth contexts."""

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from address_admin.core.authorization import AuthorizationPolicy, AuthSession, RequestContext
from address_admin.core.config import Settings
from address_admin.core.security import create_access_token, hash_password
from address_admin.models.address import Address
from address_admin.models.base import Base
from address_admin.models.user import User

TEST_SECRET = "test-secret-key-not-for-production"


def address_fields(**overrides: Any) -> dict[str, Any]:
    """A complete, valid address field map."""
    fields: dict[str, Any] = {
        "salutation": "Ms.",
        "first_name": "Jane",
        "last_name": "Doe",
        "company": "Initech",
        "street": "Main Street",
        "house_number": "42",
        "postal_code": "10115",
        "city": "Berlin",
        "country": "Germany",
        "email": "jane.doe@example.com",
        "phone": "+49 30 1234567",
        "mobile": None,
        "keywords": None,
        "search_terms": None,
        "profile_image": None,
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def fields_for() -> Callable[..., dict[str, Any]]:
    """Expose the valid field-map builder to tests."""
    return address_fields


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key=TEST_SECRET,
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=30,
        jwt_refresh_token_expire_days=7,
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def admin_user(async_session: AsyncSession) -> User:
    """Persist an active admin user."""
    user = User(
        id=uuid.uuid4(),
        username="testadmin",
        email="admin@test.com",
        hashed_password=hash_password("testpassword123"),
        role="admin",
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
async def standard_user(async_session: AsyncSession) -> User:
    """Persist an active standard (non-admin) user."""
    user = User(
        id=uuid.uuid4(),
        username="testuser",
        email="user@test.com",
        hashed_password=hash_password("testpassword123"),
        role="user",
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
def admin_context() -> RequestContext:
    """Request context carrying an admin session."""
    return RequestContext(session=AuthSession(user_id=uuid.uuid4(), username="testadmin", role="admin"))


@pytest.fixture
def user_context() -> RequestContext:
    """Request context carrying a standard user session."""
    return RequestContext(session=AuthSession(user_id=uuid.uuid4(), username="testuser", role="user"))


@pytest.fixture
def anonymous_context() -> RequestContext:
    """Request context without a session."""
    return RequestContext(session=None, policy=AuthorizationPolicy())


@pytest.fixture
def admin_token(settings: Settings) -> str:
    """JWT access token for the admin user."""
    return create_access_token(
        subject="testadmin",
        role="admin",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def user_token(settings: Settings) -> str:
    """JWT access token for the standard user."""
    return create_access_token(
        subject="testuser",
        role="user",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def make_address(async_session: AsyncSession) -> Callable[..., Any]:
    """Factory persisting an address; ``age`` orders rows (larger is older)."""
    base_time = datetime(2026, 1, 1, tzinfo=UTC)

    async def _make(age: int = 0, **overrides: Any) -> Address:
        address = Address(**address_fields(**overrides))
        address.created_at = base_time - timedelta(minutes=age)
        address.updated_at = address.created_at
        async_session.add(address)
        await async_session.commit()
        await async_session.refresh(address)
        return address

    return _make
