"""Application configuration and settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_BASE_DIR = Path(__file__).resolve().parents[1]
_ENV_FILE = _BASE_DIR / ".env"

DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore"
    )

    # Runtime
    app_env: Literal["development", "test", "production"] = Field(
        default="development", description="Deployment environment"
    )
    app_version: str = Field(default="1.0.0", description="Reported API version")
    log_level: str = Field(default="INFO", description="Root log level")

    # Database
    database_url: str = Field(
        default="sqlite:///./issue_tracker.db",
        description="SQLAlchemy database URL",
    )
    auto_create_schema: bool = Field(
        default=True,
        description="Create tables on startup instead of relying on migrations",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (rate limiting backend)",
    )

    # HTTP
    api_prefix: str = Field(default="/api/v1", description="Versioned route prefix")
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:3001",
        ],
        description="Allowed CORS origins",
    )

    # JWT Configuration
    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET, description="HMAC secret for access tokens"
    )
    jwt_issuer: str = Field(default="logistics-api")
    jwt_audience: str = Field(default="logistics-api-users")
    jwt_access_ttl_minutes: int = Field(default=15, ge=1)
    jwt_refresh_ttl_days: int = Field(default=7, ge=1)

    # Password hashing (Argon2id cost)
    password_time_cost: int = Field(default=3, ge=1)
    password_memory_cost: int = Field(default=65536, ge=8, description="KiB")

    # Rate limiting: (requests, window seconds) per route class
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_backend: Literal["memory", "redis"] = Field(default="memory")
    rate_limit_auth: int = Field(default=10)
    rate_limit_auth_window_s: int = Field(default=15 * 60)
    rate_limit_create: int = Field(default=100)
    rate_limit_create_window_s: int = Field(default=60 * 60)
    rate_limit_general: int = Field(default=1000)
    rate_limit_general_dev: int = Field(default=2000)
    rate_limit_general_window_s: int = Field(default=60 * 60)

    @field_validator("database_url", mode="after")
    @classmethod
    def _normalize_sqlite_url(cls, value: str) -> str:
        """Ensure relative sqlite URLs always point to the repo root."""
        sqlite_prefixes = ("sqlite:///", "sqlite+pysqlite:///")
        for prefix in sqlite_prefixes:
            if value.startswith(prefix):
                path = value[len(prefix) :]
                if path and not path.startswith("/") and path != ":memory:":
                    abs_path = (_BASE_DIR / path).resolve()
                    return f"{prefix}{abs_path.as_posix()}"
        return value

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def general_rate_limit(self) -> int:
        """Requests per window for ordinary routes."""
        if self.is_development:
            return self.rate_limit_general_dev
        return self.rate_limit_general


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def validate_runtime_config(settings: Settings) -> None:
    """Refuse to boot production with the placeholder signing secret."""
    if settings.is_production and settings.jwt_secret == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set in production.")
