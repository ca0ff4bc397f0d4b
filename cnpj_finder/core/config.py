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

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_registry_settings() -> "RegistrySettings":
    """Build registry client settings from environment."""

    return RegistrySettings()


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


class RegistrySettings(BaseSettings):
    """Outbound CNPJ registry (publica.cnpj.ws) configuration."""

    base_url: str = Field(
        "https://publica.cnpj.ws",
        description="Base URL of the public CNPJ registry API",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Total time budget for a single upstream lookup",
        gt=0,
    )
    user_agent: str = Field(
        "CNPJ-Finder-App/1.0",
        description="User-Agent header sent to the registry",
    )
    max_retries: int = Field(
        0,
        description="Extra attempts after an upstream timeout or transport failure",
        ge=0,
        le=5,
    )
    retry_delay_seconds: float = Field(
        1.0,
        description="Fixed delay between upstream attempts",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client and per-CNPJ rate limiting",
    )
    rate_limit_requests_per_client: int = Field(
        10,
        description="Maximum requests per window for a single client address",
        ge=1,
    )
    rate_limit_requests_per_cnpj: int = Field(
        3,
        description="Maximum requests per window for a single CNPJ",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Sliding window size in seconds",
        ge=1,
    )
    rate_limit_gc_threshold: int = Field(
        1000,
        description="Tracked subjects above which admissions also purge stale entries",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    cache_ttl_seconds: int = Field(
        300,
        description="Time-to-live of cached lookups in seconds",
        ge=1,
    )
    cache_max_entries: int = Field(
        1000,
        description="Maximum number of cached lookups",
        ge=1,
    )
    sweep_interval_seconds: float = Field(
        60.0,
        description="Interval of the background cache/rate-limit sweep",
        gt=0,
    )
    max_list_items: int = Field(
        100,
        description="Cap applied to activities, registrations and members in responses",
        ge=1,
    )
    expose_error_details: bool = Field(
        False,
        description="Return the raw failure cause as `details` in error responses (local debugging only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (uses .env.development)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    registry: RegistrySettings = Field(default_factory=_build_registry_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def expose_error_details(self) -> bool:
        """Whether raw failure details may be returned to clients.

        Opt-in through ``APP_EXPOSE_ERROR_DETAILS``; never honored in production.
        """
        return self.app.expose_error_details and self.app_env != "production"


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
