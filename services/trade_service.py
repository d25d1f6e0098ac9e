"""
Producer and reader entry points into the core.

The HTTP layer calls these after validating the request; nothing here
re-validates.
"""

from __future__ import annotations

from data.db import Database
from data.queue_store import QueueStore
from data.schema import AccountStatsRecord, TradeCreate
from data.stats_store import StatsStore
from utils.logger import get_logger

logger = get_logger(__name__)


class TradeService:
    """Facade over the queue and stats stores."""

    def __init__(self, database: Database):
        self.database = database
        self.queue_store = QueueStore(database)
        self.stats_store = StatsStore(database)

    async def submit_trade(self, trade: TradeCreate) -> int:
        """Durably queue a trade and return its id. Aggregation happens later."""
        trade_id = await self.queue_store.enqueue(trade)
        logger.info(
            f"TRADE | queued #{trade_id} | {trade.account} | {trade.side.value} "
            f"{trade.symbol} vol={trade.volume} open={trade.open_price} close={trade.close_price}"
        )
        return trade_id

    async def account_stats(self, account: str) -> AccountStatsRecord:
        """Current aggregate for an account (zero record if never aggregated)."""
        return await self.stats_store.get_stats(account)

    async def pending_count(self) -> int:
        return await self.queue_store.count_pending()

    async def ping(self) -> None:
        """Storage round trip; raises StorageError when unreachable."""
        await self.database.ping()
