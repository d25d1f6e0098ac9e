"""
CORE MODULE
Trade queue core components

- enums.py: Side and worker state enums
- exceptions.py: Error hierarchy
- profit.py: Profit calculator
"""

from core.enums import Side, WorkerState
from core.exceptions import (
    ConfigurationError,
    StorageError,
    TradeNotFoundError,
    TradeQueueError,
)
from core.profit import CONTRACT_SIZE, calculate_profit, trade_profit

__all__ = [
    "Side",
    "WorkerState",
    "ConfigurationError",
    "StorageError",
    "TradeNotFoundError",
    "TradeQueueError",
    "CONTRACT_SIZE",
    "calculate_profit",
    "trade_profit",
]
