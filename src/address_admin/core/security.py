"""JWT token creation/validation and password hashing.

Uses PyJWT for JWT operations and passlib with bcrypt for password hashing.
"""

from datetime import UTC, datetime, timedelta

import jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def _encode(payload: dict, secret_key: str, algorithm: str, lifetime: timedelta) -> str:
    payload["exp"] = datetime.now(UTC) + lifetime
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def create_access_token(
    subject: str,
    role: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 30,
) -> str:
    """Create a JWT access token carrying the user's role.

    Args:
        subject: The token subject (the username).
        role: The user's role at issue time.
        secret_key: Secret key for signing.
        algorithm: JWT signing algorithm.
        expires_minutes: Token lifetime in minutes.

    Returns:
        The encoded JWT string.
    """
    payload = {"sub": subject, "role": role, "type": ACCESS_TOKEN_TYPE}
    return _encode(payload, secret_key, algorithm, timedelta(minutes=expires_minutes))


def create_refresh_token(
    subject: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_days: int = 7,
) -> str:
    """Create a JWT refresh token.

    Args:
        subject: The token subject (the username).
        secret_key: Secret key for signing.
        algorithm: JWT signing algorithm.
        expires_days: Token lifetime in days.

    Returns:
        The encoded JWT string.
    """
    payload = {"sub": subject, "type": REFRESH_TOKEN_TYPE}
    return _encode(payload, secret_key, algorithm, timedelta(days=expires_days))


def decode_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> dict:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is invalid.
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])
