"""Application configuration via Pydantic Settings.

Reads environment variables (and optional .env file) and validates them
at startup. Use ``get_settings()`` to obtain a cached singleton.
"""

from __future__ import annotations

import secrets
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from superengulfing.routing.routes import validate_admin_alias


class Settings(BaseSettings):
    """Validated application settings sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # --- Site / external API ---------------------------------------------
    SITE_URL: str = "https://superengulfing.com"
    API_URL: str = "http://localhost:3001"
    API_TIMEOUT_SECONDS: int = 10

    # --- Routing behaviour -----------------------------------------------
    THANK_YOU_GATE: Literal["token", "confirmed"] = "token"
    ADMIN_ALIAS: str = "admin2admin10"
    DEV_LOGIN_ENABLED: bool = False

    # --- Sessions ----------------------------------------------------------
    COOKIE_SECURE: bool = False
    ADMIN_FLOW_TTL_SECONDS: int = 900
    # Signs the admin_session cookie.  Unset: a random per-process key, so
    # remembered admin sessions do not survive a restart.
    SESSION_SECRET: str = Field(default_factory=lambda: secrets.token_urlsafe(32))

    # --- Optional (with defaults) ----------------------------------------
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000

    # --- Validators ------------------------------------------------------
    @field_validator("SITE_URL")
    @classmethod
    def _validate_site_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("SITE_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("API_URL")
    @classmethod
    def _normalize_api_url(cls, v: str) -> str:
        """Strip a trailing ``/api``: the client appends ``/api/...`` itself."""
        v = v.strip().rstrip("/")
        if v.endswith("/api"):
            v = v[: -len("/api")]
        return v

    @field_validator("ADMIN_ALIAS")
    @classmethod
    def _validate_admin_alias(cls, v: str) -> str:
        v = v.strip()
        if not v or "/" in v:
            raise ValueError("ADMIN_ALIAS must be a single non-empty path segment")
        if v == "admin":
            raise ValueError("ADMIN_ALIAS must differ from 'admin'")
        return validate_admin_alias(v)

    @field_validator("SESSION_SECRET")
    @classmethod
    def _validate_session_secret(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("SESSION_SECRET must be at least 32 characters")
        return v

    @field_validator("API_TIMEOUT_SECONDS", "ADMIN_FLOW_TTL_SECONDS", "PORT")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings singleton."""
    return Settings()
