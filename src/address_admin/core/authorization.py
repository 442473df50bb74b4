"""Session guard and address authorization policy.

The request's identity is resolved once (see
``core.dependencies.get_request_context``) and handed to every address
operation as an explicit ``RequestContext``.  Operations then call
``authorize`` with their operation name; the policy decides whether a plain
session is enough or the elevated role is required.
"""

import uuid
from dataclasses import dataclass, field

from address_admin.core.config import ADDRESS_OPERATIONS, Settings
from address_admin.core.errors import ForbiddenError, UnauthorizedError

DEFAULT_ADMIN_ROLE = "admin"
DEFAULT_ADMIN_OPERATIONS: frozenset[str] = frozenset({"delete"})


@dataclass(frozen=True)
class AuthSession:
    """Identity resolved from a valid access token."""

    user_id: uuid.UUID
    username: str
    role: str


@dataclass(frozen=True)
class AuthorizationPolicy:
    """Which address operations require the elevated role."""

    admin_role: str = DEFAULT_ADMIN_ROLE
    admin_operations: frozenset[str] = DEFAULT_ADMIN_OPERATIONS

    def __post_init__(self) -> None:
        unknown = self.admin_operations - ADDRESS_OPERATIONS
        if unknown:
            msg = f"Unknown address operations: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthorizationPolicy":
        """Build the policy from application settings."""
        return cls(admin_role=settings.admin_role, admin_operations=settings.address_admin_operation_set)

    def requires_admin(self, operation: str) -> bool:
        """Return True when ``operation`` is restricted to the admin role."""
        return operation in self.admin_operations


@dataclass(frozen=True)
class RequestContext:
    """Authorization context threaded through every address operation."""

    session: AuthSession | None = None
    policy: AuthorizationPolicy = field(default_factory=AuthorizationPolicy)


def require_session(context: RequestContext) -> AuthSession:
    """Return the context's session.

    Raises:
        UnauthorizedError: If the request carries no session.
    """
    if context.session is None:
        raise UnauthorizedError
    return context.session


def require_admin(context: RequestContext) -> AuthSession:
    """Return the context's session if it holds the elevated role.

    Raises:
        UnauthorizedError: If the request carries no session.
        ForbiddenError: If the session's role is not the admin role.
    """
    session = require_session(context)
    if session.role != context.policy.admin_role:
        raise ForbiddenError
    return session


def authorize(context: RequestContext, operation: str) -> AuthSession:
    """Apply the policy for ``operation`` and return the session."""
    if context.policy.requires_admin(operation):
        return require_admin(context)
    return require_session(context)
