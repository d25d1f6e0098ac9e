"""Shared utilities (logging)."""

from utils.logger import configure_logging, get_logger, setup_logging

__all__ = ["configure_logging", "get_logger", "setup_logging"]
