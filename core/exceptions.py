"""
Core Exceptions
===============

Exception hierarchy for the trade queue service.

Storage faults are the only errors the core raises at runtime; validation
faults are rejected by the transport before a trade reaches the core.

License: MIT
"""

from __future__ import annotations


class TradeQueueError(Exception):
    """Base exception for all trade queue errors."""
    pass


class ConfigurationError(TradeQueueError):
    """Configuration error."""
    pass


class StorageError(TradeQueueError):
    """Connection, IO or constraint failure in the storage layer."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")


class TradeNotFoundError(StorageError):
    """No queued trade exists with the given id."""

    def __init__(self, trade_id: int, operation: str = "mark_processed") -> None:
        self.trade_id = trade_id
        super().__init__(operation, f"trade {trade_id} not found")


__all__ = [
    "TradeQueueError",
    "ConfigurationError",
    "StorageError",
    "TradeNotFoundError",
]
