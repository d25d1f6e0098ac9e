"""
Shared Enums
============

Usage:
    from core.enums import Side, WorkerState

License: MIT
"""

from enum import Enum


class Side(str, Enum):
    """Trade direction."""

    BUY = "buy"
    SELL = "sell"


class WorkerState(str, Enum):
    """Polling worker lifecycle state."""

    IDLE = "idle"
    DRAINING = "draining"
    STOPPED = "stopped"
