"""Application settings loaded from the environment."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the notification backend."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./notifications.db"
    redis_url: str = "redis://localhost:6379/0"

    activity_backend: Literal["sql", "redis"] = "sql"
    activity_debounce_seconds: int = Field(default=60, ge=0)

    # "novu" or "none"; empty means auto-detect from the Novu secret.
    notification_provider: str = ""
    novu_secret_key: str = ""
    novu_app_id: str = ""
    novu_base_url: str = "https://api.novu.co"
    novu_timeout_seconds: float = Field(default=10.0, gt=0)

    delivery_log_retention_days: int = Field(default=90, ge=1)


settings = Settings()
