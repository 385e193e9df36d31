# backend/app/core/config.py
"""
Production-ready configuration using pydantic-settings.

Security considerations:
- No hardcoded secrets in production (SECRET_KEY must be set via env)
- CORS_ORIGINS parsed from comma-separated env var, never defaults to "*"
- Database URLs normalized for async drivers automatically
- Stored API keys are encrypted with a key derived from SECRET_KEY unless
  SECRET_ENCRYPTION_KEY is provided explicitly
"""
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Strictly typed application settings.

    Priority for loading:
    1. Environment variables (highest priority)
    2. .env file (via pydantic-settings)
    3. Default values (lowest priority, dev-safe only)
    """

    # ─────────────────────────────────────────────────────────────
    # Application metadata
    # ─────────────────────────────────────────────────────────────
    PROJECT_NAME: str = "Test Case Generator"
    PROJECT_VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # ─────────────────────────────────────────────────────────────
    # Environment mode
    # Used to toggle behaviors between dev/production safely
    # ─────────────────────────────────────────────────────────────
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # ─────────────────────────────────────────────────────────────
    # Security: secrets at rest
    # SECRET_KEY MUST be set in production via environment variable.
    # SECRET_ENCRYPTION_KEY is an optional Fernet key; when empty a key
    # is derived from SECRET_KEY.
    # ─────────────────────────────────────────────────────────────
    SECRET_KEY: str = "INSECURE_DEV_KEY_CHANGE_IN_PRODUCTION"
    SECRET_ENCRYPTION_KEY: str = ""

    # Provider API keys must start with this prefix
    API_KEY_PREFIX: str = "sk-"

    # ─────────────────────────────────────────────────────────────
    # Accounts & sessions
    # ─────────────────────────────────────────────────────────────
    BCRYPT_ROUNDS: int = 12
    SESSION_LIFETIME_DAYS: int = 30
    SESSION_COOKIE_NAME: str = "sessionId"
    SESSION_HEADER_NAME: str = "X-Session-Id"

    # Accounts unused for this many days are removed by the cleanup job
    ACCOUNT_INACTIVITY_DAYS: int = 30

    # ─────────────────────────────────────────────────────────────
    # Rate limiting for register/login
    # ─────────────────────────────────────────────────────────────
    AUTH_RATE_LIMIT_ATTEMPTS: int = 10
    AUTH_RATE_LIMIT_WINDOW_MINUTES: int = 15

    # ─────────────────────────────────────────────────────────────
    # Daily cleanup job (UTC wall clock)
    # ─────────────────────────────────────────────────────────────
    CLEANUP_ENABLED: bool = True
    CLEANUP_HOUR_UTC: int = 2
    CLEANUP_MINUTE_UTC: int = 0

    # ─────────────────────────────────────────────────────────────
    # Database Configuration
    # Priority: DATABASE_URL env var → SQLite fallback for local dev
    #
    # Hosted Postgres often provides DATABASE_URL with postgres:// scheme.
    # We normalize to postgresql+asyncpg:// for SQLAlchemy async.
    # ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/testcase-generator.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """
        Normalize database URLs for async SQLAlchemy compatibility.

        Conversions:
        - postgres://     → postgresql+asyncpg://
        - postgresql://   → postgresql+asyncpg://
        - sqlite:///      → sqlite+aiosqlite:///
        """
        if v is None:
            return "sqlite+aiosqlite:///./data/testcase-generator.db"

        url = v.strip()

        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)

        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        return url

    @field_validator("CLEANUP_HOUR_UTC")
    @classmethod
    def check_cleanup_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError("CLEANUP_HOUR_UTC must be between 0 and 23")
        return v

    @field_validator("CLEANUP_MINUTE_UTC")
    @classmethod
    def check_cleanup_minute(cls, v: int) -> int:
        if not 0 <= v <= 59:
            raise ValueError("CLEANUP_MINUTE_UTC must be between 0 and 59")
        return v

    # ─────────────────────────────────────────────────────────────
    # Database debugging
    # MUST be False in production to prevent SQL query exposure
    # ─────────────────────────────────────────────────────────────
    DATABASE_ECHO: bool = False

    # ─────────────────────────────────────────────────────────────
    # CORS Configuration
    # Parsed from comma-separated CORS_ORIGINS env var
    # Empty string → empty list (NOT "*" for security)
    # ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        """
        Parse CORS_ORIGINS string into a list of allowed origins.

        Returns:
            List of allowed origin URLs
        """
        if not self.CORS_ORIGINS or not self.CORS_ORIGINS.strip():
            return []

        return [
            origin.strip()
            for origin in self.CORS_ORIGINS.split(",")
            if origin.strip()
        ]

    # ─────────────────────────────────────────────────────────────
    # Pydantic Settings Configuration
    # ─────────────────────────────────────────────────────────────
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        # Extra fields in .env are ignored (prevents config injection)
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite database (local development)."""
        return "sqlite" in self.DATABASE_URL.lower()

    @property
    def session_lifetime_seconds(self) -> int:
        return self.SESSION_LIFETIME_DAYS * 24 * 60 * 60


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    Using lru_cache ensures settings are only loaded once,
    providing consistent configuration across the application
    and avoiding repeated env var parsing.
    """
    return Settings()


# Module-level instance for `from backend.app.core.config import settings`
settings = get_settings()
