"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Production usually injects env vars directly, so the file is optional
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    site_url: str = Field(
        "http://localhost:4321",
        description="Public site origin used to build confirmation and unsubscribe links",
    )
    allowed_origins: str = Field(
        "https://pymcu.com,https://www.pymcu.com",
        description="Comma-separated list of origins allowed by CORS",
    )
    dev_origins: str = Field(
        "http://localhost:4321,http://localhost:3000,http://127.0.0.1:4321",
        description="Extra CORS origins allowed outside production",
    )
    cors_max_age_seconds: int = Field(
        86400,
        description="How long browsers may cache CORS preflight results",
        ge=0,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on waitlist endpoints",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers alongside Retry-After when throttling",
    )
    rate_limit_sweep_probability: float = Field(
        0.01,
        description="Chance per check that the limiter sweeps expired windows",
        ge=0.0,
        le=1.0,
    )
    rate_limit_waitlist_window_seconds: int = Field(15 * 60, ge=1)
    rate_limit_waitlist_requests: int = Field(
        3,
        description="Registrations allowed per client per window",
        ge=1,
    )
    rate_limit_confirm_window_seconds: int = Field(5 * 60, ge=1)
    rate_limit_confirm_requests: int = Field(
        10,
        description="Confirmation attempts allowed per client per window",
        ge=1,
    )
    rate_limit_unsubscribe_window_seconds: int = Field(5 * 60, ge=1)
    rate_limit_unsubscribe_requests: int = Field(
        5,
        description="Unsubscribe attempts allowed per client per window",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Waitlist record store configuration."""

    backend: str = Field(
        "memory",
        description="Store backend: 'memory' or 'sql'",
    )
    database_url: str = Field(
        "sqlite:///./waitlist.db",
        description="SQLAlchemy database URL used by the 'sql' backend",
    )
    echo: bool = Field(
        False,
        description="Log emitted SQL statements",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class EmailSettings(BaseSettings):
    """Amazon SES configuration.

    Delivery is skipped (and logged) unless both region and from_email are set.
    Credentials fall back to the default boto3 chain when omitted.
    """

    region: str | None = Field(None, description="AWS region hosting SES")
    access_key_id: str | None = Field(None, description="AWS access key id")
    secret_access_key: str | None = Field(None, description="AWS secret access key")
    from_email: str | None = Field(None, description="Verified sender address")
    from_name: str = Field("PyMCU Team", description="Display name for the sender")

    model_config = SettingsConfigDict(
        env_prefix="SES_",
        case_sensitive=False,
    )

    @property
    def configured(self) -> bool:
        return bool(self.region and self.from_email)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output is 'file'")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Header carrying the correlation id")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Loads from the appropriate .env.{APP_ENV} file when present.

    Environments:
    - development: Local development
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (enables HSTS, drops dev CORS origins)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


# Nested settings are created via default_factory so env loading works.
settings = Settings()
