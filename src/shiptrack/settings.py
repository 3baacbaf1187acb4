"""
shiptrack.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, default admin password).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `SHIPTRACK_`), defaults safe for local dev.
    """

    model_config = SettingsConfigDict(env_prefix="SHIPTRACK_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "shiptrack"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 4000
    # Browser front ends allowed to call the API (JSON list in the env var).
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "shiptrack"
    jwt_audience: str = "shiptrack-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    jwt_ttl_hours: int = Field(default=7, ge=1)
    bcrypt_rounds: int = Field(default=10, ge=4, le=20)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./shiptrack.db"
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=0, ge=0)
    db_pool_timeout: float = Field(default=30.0, gt=0)

    # Queries
    max_page_size: int = Field(default=100, ge=1)

    # Subscriptions
    subscription_queue_size: int = Field(default=100, ge=1)

    # Bootstrap: created only when the users table is empty.
    seed_default_admin: bool = True
    default_admin_username: str = "admin"
    default_admin_email: str = "admin@tms.com"
    default_admin_password: str = Field(default="admin123", repr=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The CLI builds its own Settings instance so `--database-url` can override the env.
