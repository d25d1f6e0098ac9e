"""
Stats Store
===========

Per-account aggregates backed by the ``account_stats`` table.

The increment is one ``INSERT ... ON CONFLICT DO UPDATE`` statement, so the
database applies it atomically. Two concurrent calls for the same account
never lose an update; there is no read-modify-write in Python.

License: MIT
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConfigurationError
from data.db import Database, storage_errors
from data.models import AccountStats
from data.schema import AccountStatsRecord
from utils.logger import get_logger

logger = get_logger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class StatsStore:
    """Atomic upsert / read operations over account aggregates."""

    def __init__(self, database: Database):
        self._db = database

    def _upsert(self, account: str, profit: float):
        dialect = self._db.engine.dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise ConfigurationError(f"No atomic upsert available for dialect '{dialect}'")

        stmt = insert(AccountStats).values(
            account=account,
            trade_count=1,
            cumulative_profit=profit,
        )
        return stmt.on_conflict_do_update(
            index_elements=["account"],
            set_={
                "trade_count": AccountStats.trade_count + 1,
                "cumulative_profit": AccountStats.cumulative_profit + stmt.excluded.cumulative_profit,
            },
        )

    async def apply_profit(
        self,
        account: str,
        profit: float,
        session: AsyncSession | None = None,
    ) -> None:
        """
        Fold one processed trade into the account's aggregate.

        Creates the row with ``trade_count = 1`` or increments the existing
        one by one trade and ``profit``.

        Args:
            account: Account identifier
            profit: Signed profit of the trade
            session: Optional session of an enclosing transaction

        Raises:
            StorageError: On any storage fault
        """
        stmt = self._upsert(account, profit)
        if session is None:
            async with self._db.transaction("apply_profit") as session:
                await session.execute(stmt)
        else:
            with storage_errors("apply_profit"):
                await session.execute(stmt)
        logger.debug(f"Applied {profit:+.2f} to {account}")

    async def get_stats(self, account: str) -> AccountStatsRecord:
        """
        Read an account's aggregate.

        Accounts with no processed trades return the zero record, not an error.
        """
        async with self._db.session() as session:
            with storage_errors("get_stats"):
                row = await session.scalar(
                    select(AccountStats).where(AccountStats.account == account)
                )
        if row is None:
            return AccountStatsRecord.zero(account)
        return AccountStatsRecord.model_validate(row)
