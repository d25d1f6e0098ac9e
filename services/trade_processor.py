"""
Trade Processor
===============

Per-trade unit of work: claim the queued row, compute its profit and fold the
profit into the account aggregate.

Both writes go through one transaction. Either the row is marked processed
and the stats are incremented, or neither happens and the trade stays
pending for the next poll tick. The claim is a conditional update, so a trade
already marked by an earlier tick is never counted twice.

License: MIT
"""

from __future__ import annotations

from core.profit import trade_profit
from data.db import Database
from data.queue_store import QueueStore
from data.schema import TradeRecord
from data.stats_store import StatsStore
from utils.logger import get_logger

logger = get_logger(__name__)


class TradeProcessor:
    """Applies one queued trade to the stats store."""

    def __init__(
        self,
        database: Database,
        queue_store: QueueStore | None = None,
        stats_store: StatsStore | None = None,
    ):
        self._db = database
        self.queue_store = queue_store or QueueStore(database)
        self.stats_store = stats_store or StatsStore(database)

    async def process(self, trade: TradeRecord) -> bool:
        """
        Process one trade.

        Args:
            trade: A trade returned by ``QueueStore.fetch_pending``

        Returns:
            True if the trade was applied, False if it had already been
            processed (nothing is applied in that case)

        Raises:
            StorageError: The transaction failed and was rolled back
        """
        profit = trade_profit(trade)

        async with self._db.transaction("process_trade") as session:
            claimed = await self.queue_store.mark_processed(trade.id, session=session)
            if not claimed:
                logger.debug(f"Trade #{trade.id} already processed, skipping")
                return False
            await self.stats_store.apply_profit(trade.account, profit, session=session)

        logger.debug(f"Trade #{trade.id} applied: {trade.account} {profit:+.2f}")
        return True
