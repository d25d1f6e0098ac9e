"""
Data Module
===========

Durable storage for the trade queue service.

Components:
- db: Engine, sessions and transactions
- models: ``trades_q`` and ``account_stats`` tables
- schema: Pydantic value types exchanged with callers
- queue_store: Pending-trade queue
- stats_store: Per-account aggregates

License: MIT
"""

from data.db import Base, Database, open_database, storage_errors
from data.models import AccountStats, PendingTrade
from data.queue_store import QueueStore
from data.schema import AccountStatsRecord, TradeCreate, TradeRecord
from data.stats_store import StatsStore

__all__ = [
    "Base",
    "Database",
    "open_database",
    "storage_errors",
    "AccountStats",
    "PendingTrade",
    "QueueStore",
    "AccountStatsRecord",
    "TradeCreate",
    "TradeRecord",
    "StatsStore",
]
