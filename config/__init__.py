"""
Configuration module for the trade queue service.

This module provides centralized configuration management:
- Global settings (settings.py), loaded from the environment and ``.env``
"""

from config.settings import (
    DEFAULT_DB_PATH,
    ApiSettings,
    DatabaseSettings,
    LoggingSettings,
    Settings,
    WorkerSettings,
    get_settings,
    reload_settings,
    settings,
    sqlite_url,
)

__all__ = [
    "DEFAULT_DB_PATH",
    "ApiSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "Settings",
    "WorkerSettings",
    "get_settings",
    "reload_settings",
    "settings",
    "sqlite_url",
]
