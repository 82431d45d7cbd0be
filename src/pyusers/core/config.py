"""
Application configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool | None = Field(
        default=None,
        description="Force JSON logs on/off (defaults to on in production)",
    )

    app_name: str = Field(default="PyUsers", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # Database Configuration
    # ==========================================================================
    database_url: str | None = Field(
        default=None,
        description="Async SQLAlchemy connection string (ephemeral SQLite when unset)",
    )
    db_pool_size: int = Field(default=20, description="Database connection pool size")
    db_max_overflow: int = Field(default=10, description="Max overflow connections")
    db_pool_timeout: int = Field(default=30, description="Pool timeout in seconds")

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str | None, info) -> str | None:
        """Ensure PostgreSQL URLs use the asyncpg driver and SQLite URLs use aiosqlite."""
        if not v:
            return None
        if v.startswith("postgresql://"):
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif v.startswith("sqlite://"):
            v = v.replace("sqlite://", "sqlite+aiosqlite://", 1)

        environment = info.data.get("environment", "development")
        if environment == "production" and "localhost" in v.lower():
            raise ValueError(
                "DATABASE_URL must point at a production database in production. "
                "Set DATABASE_URL environment variable."
            )
        return v

    @property
    def sync_database_url(self) -> str | None:
        """Get synchronous database URL for schema creation."""
        if self.database_url is None:
            return None
        return (
            self.database_url.replace("+asyncpg", "+psycopg")
            .replace("+aiosqlite", "")
        )

    # ==========================================================================
    # Cache Configuration
    # ==========================================================================
    redis_url: str | None = Field(
        default=None,
        description="Redis connection string (in-process cache when unset)",
    )
    redis_max_connections: int = Field(default=50, description="Max Redis connections")
    cache_ttl_seconds: int = Field(default=300, description="User cache TTL in seconds")

    # ==========================================================================
    # Identity Providers
    # ==========================================================================
    coerce_unknown_providers: bool = Field(
        default=False,
        description="Map unknown provider codes to OTHER instead of rejecting them",
    )
    default_roles: list[str] = Field(
        default=["user"],
        description="Roles assigned to newly provisioned users",
    )

    @field_validator("default_roles", mode="before")
    @classmethod
    def parse_default_roles(cls, v: Any) -> list[str]:
        """Parse default roles from comma-separated string."""
        if isinstance(v, str):
            return [role.strip() for role in v.split(",") if role.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check whether the app runs against production data."""
        return self.environment == "production"

    @property
    def use_json_logs(self) -> bool:
        """Resolve JSON logging, defaulting to on in production."""
        if self.json_logs is None:
            return self.is_production
        return self.json_logs


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
