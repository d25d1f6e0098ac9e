"""
Unit tests for the per-account stats store.
"""

import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from core.exceptions import ConfigurationError
from data.schema import AccountStatsRecord
from data.stats_store import StatsStore


class TestGetStats:

    @pytest.mark.asyncio
    async def test_unknown_account_reads_zero(self, stats_store):
        stats = await stats_store.get_stats("nobody")

        assert stats == AccountStatsRecord(account="nobody", trade_count=0, cumulative_profit=0.0)


class TestApplyProfit:

    @pytest.mark.asyncio
    async def test_first_apply_creates_record(self, stats_store):
        await stats_store.apply_profit("acc1", 100000.0)

        stats = await stats_store.get_stats("acc1")
        assert stats.trade_count == 1
        assert stats.cumulative_profit == pytest.approx(100000.0)

    @pytest.mark.asyncio
    async def test_apply_increments(self, stats_store):
        await stats_store.apply_profit("acc1", 100000.0)
        await stats_store.apply_profit("acc1", -25000.0)
        await stats_store.apply_profit("acc1", 0.0)

        stats = await stats_store.get_stats("acc1")
        assert stats.trade_count == 3
        assert stats.cumulative_profit == pytest.approx(75000.0)

    @pytest.mark.asyncio
    async def test_accounts_are_independent(self, stats_store):
        await stats_store.apply_profit("acc1", 10.0)
        await stats_store.apply_profit("acc2", -5.0)

        assert (await stats_store.get_stats("acc1")).cumulative_profit == pytest.approx(10.0)
        assert (await stats_store.get_stats("acc2")).cumulative_profit == pytest.approx(-5.0)
        assert (await stats_store.get_stats("acc2")).trade_count == 1

    @pytest.mark.asyncio
    async def test_two_concurrent_applies_fresh_account(self, stats_store):
        """No lost update when two callers race on a new account."""
        await asyncio.gather(
            stats_store.apply_profit("acc1", 50.0),
            stats_store.apply_profit("acc1", 50.0),
        )

        stats = await stats_store.get_stats("acc1")
        assert stats.trade_count == 2
        assert stats.cumulative_profit == pytest.approx(100.0)

    @pytest.mark.asyncio
    async def test_many_concurrent_applies(self, stats_store):
        await asyncio.gather(*[
            stats_store.apply_profit("acc1" if i % 2 else "acc2", float(i))
            for i in range(20)
        ])

        acc1 = await stats_store.get_stats("acc1")
        acc2 = await stats_store.get_stats("acc2")
        assert acc1.trade_count == 10
        assert acc2.trade_count == 10
        assert acc1.cumulative_profit == pytest.approx(sum(range(1, 20, 2)))
        assert acc2.cumulative_profit == pytest.approx(sum(range(0, 20, 2)))


class TestUpsertStatement:
    """The upsert compiles per dialect without a live server."""

    @staticmethod
    def _store(dialect_name: str) -> StatsStore:
        engine = SimpleNamespace(dialect=SimpleNamespace(name=dialect_name))
        return StatsStore(SimpleNamespace(engine=engine))

    @staticmethod
    def _compile(stmt, dialect) -> str:
        return " ".join(str(stmt.compile(dialect=dialect)).split())

    def test_postgresql_upsert(self):
        sql = self._compile(self._store("postgresql")._upsert("acc1", 50.0), postgresql.dialect())

        assert sql.startswith("INSERT INTO account_stats")
        assert "ON CONFLICT (account) DO UPDATE SET" in sql
        assert "account_stats.trade_count +" in sql
        assert "account_stats.cumulative_profit + excluded.cumulative_profit" in sql

    def test_sqlite_upsert(self):
        sql = self._compile(self._store("sqlite")._upsert("acc1", 50.0), sqlite.dialect())

        assert sql.startswith("INSERT INTO account_stats")
        assert "ON CONFLICT (account) DO UPDATE SET" in sql
        assert "excluded.cumulative_profit" in sql

    def test_unsupported_dialect_rejected(self):
        with pytest.raises(ConfigurationError, match="mssql"):
            self._store("mssql")._upsert("acc1", 50.0)
