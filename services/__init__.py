"""
Services Module
===============

Services running on top of the storage layer:
- TradeService: Producer ingestion and stats reads
- TradeProcessor: Per-trade unit of work
- PollingWorker: Background loop draining the queue

License: MIT
"""

from services.polling_worker import PollingWorker
from services.trade_processor import TradeProcessor
from services.trade_service import TradeService

__all__ = [
    "PollingWorker",
    "TradeProcessor",
    "TradeService",
]
