"""Configuration helpers for the news aggregator."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )

    data_dir: Path = Field(
        Path("data"),
        alias="NEWS_DATA_DIR",
        description="Directory that relative (file) source locations resolve against.",
    )
    storage_dir: Path = Field(
        Path("data/snapshots"),
        alias="NEWS_STORAGE_DIR",
        description="Root directory holding the dated snapshot archives.",
    )
    sources_manifest: Path = Field(
        Path("data/sources.json"),
        alias="NEWS_SOURCES_MANIFEST",
        description="JSON manifest persisted by the source registry.",
    )
    max_snapshot_workers: int = Field(
        8,
        alias="NEWS_MAX_SNAPSHOT_WORKERS",
        ge=1,
        description="Upper bound on concurrent per-day archive readers.",
    )
    http_timeout: float = Field(
        30.0,
        alias="NEWS_HTTP_TIMEOUT",
        description="Timeout in seconds when a source location is an http(s) URL.",
    )
    snapshot_skip_missing: bool = Field(
        False,
        alias="NEWS_SNAPSHOT_SKIP_MISSING",
        description=(
            "Skip days without an archive file during snapshot retrieval "
            "instead of failing the whole call."
        ),
    )
    log_level: str = Field("info", alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
