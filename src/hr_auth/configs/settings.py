from __future__ import annotations

from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Central configuration.

    - Values loaded from `.env` and the environment
    - Comma-separated lists for multi-value settings like CORS_ORIGINS
    - Signing secrets are read once at startup and never mutated
    """

    # ----------------------------
    # Service
    # ----------------------------
    SERVICE_NAME: str = "hr-auth-service"
    ENVIRONMENT: str = "development"
    log_level: str = "INFO"

    # ----------------------------
    # Mongo
    # ----------------------------
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "hr"
    mongo_server_selection_timeout_ms: int = 5000

    # Upper bound for a single user-store call made while serving a request.
    store_timeout_seconds: float = 5.0

    # ----------------------------
    # Redis (optional revocation denylist)
    # ----------------------------
    redis_url: str | None = None
    revocation_key_prefix: str = "hr:revoked:"

    # ----------------------------
    # CORS
    # ----------------------------
    # store as raw string list from env; we will normalize in code
    CORS_ORIGINS: Any = Field(default_factory=list)

    # ----------------------------
    # JWT
    # ----------------------------
    jwt_alg: str = "HS256"
    jwt_secret: str = "change-me"
    jwt_refresh_secret: str = "change-me-refresh"
    jwt_audience: str | None = None
    jwt_issuer: str | None = None
    access_token_minutes: int = 15
    refresh_token_days: int = 7

    # ----------------------------
    # Passwords
    # ----------------------------
    bcrypt_rounds: int = 12

    # Pydantic settings config (v2 style)
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in {"prod", "production"}


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
