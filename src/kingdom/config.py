"""Lightweight configuration for the kingdom engine."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from the environment or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="KINGDOM_"
    )

    data_dir: Path = Field(default=Path("kingdoms"), description="Where JSON snapshots live")
    store_backend: Literal["memory", "json", "sql"] = Field(
        default="json", description="State Store adapter used by the API"
    )

    DATABASE_URL: str = Field(default="sqlite:///kingdom.db", description="SQLAlchemy URL")
    DATABASE_ECHO: bool = Field(default=False, description="Log emitted SQL")
    DATABASE_POOL_SIZE: int = Field(default=5, ge=1)
    DATABASE_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DATABASE_POOL_RECYCLE: int = Field(default=1800, description="Seconds before recycling")
    DATABASE_POOL_TIMEOUT: float = Field(default=5.0, gt=0.0, description="Seconds to wait")

    store_retry_attempts: int = Field(
        default=3, ge=1, description="Attempts per store call on transient failures"
    )
    store_retry_backoff_seconds: float = Field(
        default=0.1, ge=0.0, description="Linear backoff between store attempts"
    )
    conflict_retries: int = Field(
        default=3, ge=0, description="Re-resolutions allowed after a revision conflict"
    )
    allow_fallback_opponent: bool = Field(
        default=True,
        description="Resolve against a cached or synthesized defender when its read fails",
    )
    battle_seed: str | None = Field(
        default=None,
        description="When set, every battle draw is seeded from the attack identity and this salt",
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
