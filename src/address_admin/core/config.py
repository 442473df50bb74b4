"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Operation names understood by the address authorization policy.
ADDRESS_OPERATIONS: frozenset[str] = frozenset({"list", "get", "create", "update", "delete", "export"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="Async SQLAlchemy connection string (postgresql+asyncpg://...)",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # JWT
    jwt_secret_key: str = Field(min_length=32, description="Secret key for signing JWTs (minimum 32 characters)")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=30,
        description="Access token expiration in minutes",
        gt=0,
    )
    jwt_refresh_token_expire_days: int = Field(
        default=7,
        description="Refresh token expiration in days",
        gt=0,
    )

    # Authorization
    admin_role: str = Field(
        default="admin",
        description="Role name granting elevated (destructive) privileges",
    )
    address_admin_operations: str = Field(
        default="delete",
        description="Comma-separated address operations that require the admin role",
    )

    @field_validator("address_admin_operations")
    @classmethod
    def validate_address_admin_operations(cls, v: str) -> str:
        unknown = {op.strip().lower() for op in v.split(",") if op.strip()} - ADDRESS_OPERATIONS
        if unknown:
            msg = f"Unknown address operations: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        return v

    @property
    def address_admin_operation_set(self) -> frozenset[str]:
        """Parse the admin-only operation list into a set of operation names."""
        return frozenset(op.strip().lower() for op in self.address_admin_operations.split(",") if op.strip())

    # Addresses
    address_page_size: int = Field(
        default=6,
        description="Default number of addresses per page",
        gt=0,
    )
    export_sanitize_formulas: bool = Field(
        default=False,
        description="Prefix CSV cells that start with formula characters with a single quote",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )
    cors_origin_regex: str = Field(
        default="",
        description="Regex pattern for allowed CORS origins",
    )

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
