"""FastAPI dependency injection for database sessions, auth, and access control.

Provides get_async_session, get_current_user, require_role and
require_admin_role for the auth endpoints, and get_request_context, which
resolves the authorization context handed to address operations.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from address_admin.core.authorization import AuthorizationPolicy, AuthSession, RequestContext
from address_admin.core.config import Settings, get_settings
from address_admin.core.database import get_session_factory
from address_admin.core.security import ACCESS_TOKEN_TYPE, decode_token
from address_admin.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login", auto_error=False)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def _resolve_user(session: AsyncSession, token: str, settings: Settings) -> User | None:
    """Decode an access token and load its active user, or return None."""
    try:
        payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    except jwt.PyJWTError as exc:
        logger.debug(f"Rejected bearer token: {exc}")
        return None
    username = payload.get("sub")
    if username is None or payload.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        return None

    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """Decode JWT and return the authenticated user.

    Raises:
        HTTPException: If the token is invalid or the user is unknown/inactive.
    """
    user = await _resolve_user(session, token, settings)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_role(*roles: str) -> Callable[..., Any]:
    """Factory that creates a dependency requiring specific user roles.

    Args:
        *roles: Allowed role names (e.g., "admin", "user").

    Returns:
        A FastAPI dependency function that validates the user's role.
    """

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{current_user.role}' does not have access to this resource",
            )
        return current_user

    return role_checker


async def get_request_context(
    token: Annotated[str | None, Depends(optional_oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RequestContext:
    """Resolve the authorization context for address operations.

    Never raises for missing or bad credentials: the context simply carries
    no session and the operation reports ``unauthorized`` itself.
    """
    policy = AuthorizationPolicy.from_settings(settings)
    if not token:
        return RequestContext(session=None, policy=policy)

    user = await _resolve_user(session, token, settings)
    if user is None:
        return RequestContext(session=None, policy=policy)
    return RequestContext(
        session=AuthSession(user_id=user.id, username=user.username, role=user.role),
        policy=policy,
    )


async def require_admin_role(
    current_user: Annotated[User, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """Require the configured elevated role (``Settings.admin_role``).

    Raises:
        HTTPException: 403 if the user holds a different role.
    """
    return await require_role(settings.admin_role)(current_user=current_user)
