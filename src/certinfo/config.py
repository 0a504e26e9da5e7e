"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables
  - Fall back to a .env file
  - Validate types and constraints at startup

Only the shells (CLI, web form) read settings. The framer, reporter and
pipeline take no configuration at all.

Architecture: Only AppSettings is a BaseSettings instance. WebSettings is a
plain BaseModel populated via env_nested_delimiter="__", so WEB__PORT maps
to web.port and WEB__MAX_UPLOAD_BYTES to web.max_upload_bytes.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the .env file in the project root (certinfo/ -> src/ -> root),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class WebSettings(BaseModel):
    """Upload form server configuration."""

    host: str = Field(default="0.0.0.0", description="Interface the web server binds to")
    port: int = Field(default=8080, ge=1, le=65535, description="Web server port")
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Largest accepted certificate upload, in bytes",
    )


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")
    web: WebSettings = Field(default_factory=WebSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept standard level names in any case; store them upper-cased."""
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}"
            )
        return level
