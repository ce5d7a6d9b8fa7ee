"""Application configuration and settings management."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central application settings loaded from environment variables."""

    app_name: str = Field(default="Project Planner")
    api_v1_prefix: str = Field(default="/api")

    database_url: str = Field(
        default_factory=lambda: f"sqlite:///{Path.cwd() / 'project_planner.db'}"
    )
    database_echo: bool = Field(default=False)

    cors_origins: List[str] = Field(default_factory=list)

    import_max_upload_bytes: int = Field(default=10 * 1024 * 1024)
    import_session_ttl_seconds: int = Field(default=60 * 60)
    import_max_sessions: int = Field(default=256)

    log_level: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_prefix": "PLANNER_",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[arg-type]


settings = get_settings()
"""Eagerly instantiated settings for modules that prefer direct import."""
