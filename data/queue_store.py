"""
Queue Store
===========

Durable pending-trade queue backed by the ``trades_q`` table.

Producers append rows, the polling worker scans the unprocessed ones and
flips each to processed exactly once. There is no in-memory queue: every call
reads from or writes to storage.

Every mutating method accepts an optional session. When given, the operation
joins the caller's transaction; otherwise it commits on its own.

License: MIT
"""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import TradeNotFoundError
from data.db import Database, storage_errors
from data.models import PendingTrade
from data.schema import TradeCreate, TradeRecord
from utils.logger import get_logger

logger = get_logger(__name__)


class QueueStore:
    """Append / scan / mark-done operations over queued trades."""

    def __init__(self, database: Database):
        self._db = database

    async def enqueue(self, trade: TradeCreate, session: AsyncSession | None = None) -> int:
        """
        Append a trade with ``processed = false``.

        Args:
            trade: Validated trade fields
            session: Optional session of an enclosing transaction

        Returns:
            The store-assigned trade id

        Raises:
            StorageError: On any storage fault
        """
        if session is None:
            async with self._db.transaction("enqueue") as session:
                return await self._enqueue(session, trade)
        return await self._enqueue(session, trade)

    async def _enqueue(self, session: AsyncSession, trade: TradeCreate) -> int:
        row = PendingTrade(
            account=trade.account,
            symbol=trade.symbol,
            volume=trade.volume,
            open_price=trade.open_price,
            close_price=trade.close_price,
            side=trade.side.value,
            processed=False,
        )
        with storage_errors("enqueue"):
            session.add(row)
            await session.flush()
        logger.debug(f"Enqueued trade #{row.id} for {trade.account}")
        return row.id

    async def fetch_pending(self, limit: int | None = None) -> list[TradeRecord]:
        """
        Return unprocessed trades in insertion order.

        The result comes from a single SELECT, so it is a consistent snapshot
        of the queue at the time of the call.

        Args:
            limit: Maximum number of rows (None for all pending rows)
        """
        stmt = (
            select(PendingTrade)
            .where(PendingTrade.processed.is_(False))
            .order_by(PendingTrade.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._db.session() as session:
            with storage_errors("fetch_pending"):
                result = await session.scalars(stmt)
                return [TradeRecord.model_validate(row) for row in result.all()]

    async def mark_processed(self, trade_id: int, session: AsyncSession | None = None) -> bool:
        """
        Set ``processed = true`` for one trade.

        Idempotent: marking an already processed trade is a successful no-op.

        Returns:
            True if this call flipped the flag, False if it was already set

        Raises:
            TradeNotFoundError: No trade with this id exists
            StorageError: On any storage fault
        """
        if session is None:
            async with self._db.transaction("mark_processed") as session:
                return await self._mark_processed(session, trade_id)
        return await self._mark_processed(session, trade_id)

    async def _mark_processed(self, session: AsyncSession, trade_id: int) -> bool:
        stmt = (
            update(PendingTrade)
            .where(PendingTrade.id == trade_id, PendingTrade.processed.is_(False))
            .values(processed=True)
            .execution_options(synchronize_session=False)
        )
        with storage_errors("mark_processed"):
            result = await session.execute(stmt)
            if result.rowcount == 1:
                return True

            exists = await session.scalar(
                select(func.count()).select_from(PendingTrade).where(PendingTrade.id == trade_id)
            )
        if not exists:
            raise TradeNotFoundError(trade_id)
        return False

    async def get(self, trade_id: int) -> TradeRecord:
        """Read one trade by id."""
        async with self._db.session() as session:
            with storage_errors("get"):
                row = await session.get(PendingTrade, trade_id)
        if row is None:
            raise TradeNotFoundError(trade_id, "get")
        return TradeRecord.model_validate(row)

    async def count_pending(self) -> int:
        """Number of trades still waiting for aggregation."""
        async with self._db.session() as session:
            with storage_errors("count_pending"):
                return await session.scalar(
                    select(func.count())
                    .select_from(PendingTrade)
                    .where(PendingTrade.processed.is_(False))
                ) or 0
