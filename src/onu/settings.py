"""
Gateway settings.

All values can be overridden via environment variables prefixed with
``ONU_`` (``ONU_ONU_PATH``, ``ONU_SERVER_PORT`` …) or a ``.env`` file.

Order of precedence (highest → lowest):
    1. Explicit keyword arguments
    2. Environment variables
    3. ``.env`` file
    4. Defaults below
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OnuSettings(BaseSettings):
    """Settings for an Onu task gateway."""

    model_config = SettingsConfigDict(
        env_prefix="ONU_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Tasks ────────────────────────────────────────────────────────────
    onu_path: Path | None = Field(default=None, description="Root directory holding task files")
    api_key: str | None = Field(default=None, description="Onu API key, handed to tasks via RunContext")

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    server_port: int = Field(default=8080, description="Bind port for the standalone server")
    server_path: str = Field(default="", description="Mount path of the task endpoint, e.g. 'api/onu'")

    # ── Observability ────────────────────────────────────────────────────
    debug: bool = Field(default=False, description="Reload task modules on every discovery pass")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool | None = Field(default=None, description="Force JSON (True) or console (False) logs")

    @field_validator("server_path")
    @classmethod
    def _strip_leading_slash(cls, value: str) -> str:
        return value[1:] if value.startswith("/") else value


@lru_cache
def get_settings() -> OnuSettings:
    """Return the cached process-wide settings."""
    return OnuSettings()
