"""
Global settings and configuration management for the trade queue service.

This module provides centralized configuration using Pydantic for validation
and environment variable support.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DB_PATH = "data.db"


def sqlite_url(path: str | Path) -> str:
    """Build an aiosqlite URL from a filesystem path (or ``:memory:``)."""
    path = str(path)
    if path == ":memory:":
        return "sqlite+aiosqlite:///:memory:"
    return f"sqlite+aiosqlite:///{path}"


class DatabaseSettings(BaseSettings):
    """Storage configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRADEQ_DB_",
        env_file=".env",
        extra="ignore"
    )

    url: str = sqlite_url(DEFAULT_DB_PATH)
    echo: bool = False

    # SQLite only: seconds a writer waits on a locked database before failing
    busy_timeout: float = 30.0
    sqlite_wal: bool = True

    @field_validator("url")
    @classmethod
    def require_async_driver(cls, v: str) -> str:
        """Plain sqlite URLs are upgraded to the aiosqlite driver."""
        if v.startswith("sqlite://"):
            return "sqlite+aiosqlite://" + v[len("sqlite://"):]
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class WorkerSettings(BaseSettings):
    """Polling worker configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRADEQ_WORKER_",
        env_file=".env",
        extra="ignore"
    )

    poll_interval: float = Field(default=0.1, gt=0)  # seconds between ticks
    batch_size: int | None = Field(default=None, gt=0)  # None drains everything


class ApiSettings(BaseSettings):
    """HTTP API configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRADEQ_API_",
        env_file=".env",
        extra="ignore"
    )

    host: str = "0.0.0.0"
    port: int = 8080
    run_worker: bool = False  # run the polling worker inside the API process


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRADEQ_LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Path | None = None
    rotation: str = "10 MB"
    retention: str = "30 days"
    serialize: bool = False  # JSON logging

    @field_validator("log_file", mode="before")
    @classmethod
    def convert_to_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v in (None, ""):
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseSettings):
    """Main settings container combining all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment and config files."""
    global settings
    settings = Settings()
    return settings
