"""
Unit tests for the durable pending-trade queue.
"""

import pytest

from config.settings import DatabaseSettings, sqlite_url
from core.enums import Side
from core.exceptions import StorageError, TradeNotFoundError
from data.db import Database
from data.queue_store import QueueStore


class TestEnqueue:

    @pytest.mark.asyncio
    async def test_enqueue_returns_increasing_ids(self, queue_store, trade_factory):
        first = await queue_store.enqueue(trade_factory(account="a"))
        second = await queue_store.enqueue(trade_factory(account="b"))

        assert second > first

    @pytest.mark.asyncio
    async def test_enqueued_trade_is_pending(self, queue_store, sell_trade):
        trade_id = await queue_store.enqueue(sell_trade)

        record = await queue_store.get(trade_id)
        assert record.account == "acc1"
        assert record.symbol == "ABCDEF"
        assert record.volume == 0.5
        assert record.open_price == 2.0
        assert record.close_price == 1.5
        assert record.side is Side.SELL
        assert record.processed is False

    @pytest.mark.asyncio
    async def test_enqueue_without_connection_fails(self, db_settings, buy_trade):
        store = QueueStore(Database(db_settings))

        with pytest.raises(StorageError):
            await store.enqueue(buy_trade)


class TestFetchPending:

    @pytest.mark.asyncio
    async def test_empty_queue(self, queue_store):
        assert await queue_store.fetch_pending() == []

    @pytest.mark.asyncio
    async def test_insertion_order(self, queue_store, trade_factory):
        ids = [await queue_store.enqueue(trade_factory(account=f"acc{i}")) for i in range(5)]

        pending = await queue_store.fetch_pending()

        assert [t.id for t in pending] == ids
        assert [t.account for t in pending] == [f"acc{i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_processed_rows_excluded(self, queue_store, trade_factory):
        first = await queue_store.enqueue(trade_factory())
        second = await queue_store.enqueue(trade_factory())
        await queue_store.mark_processed(first)

        pending = await queue_store.fetch_pending()

        assert [t.id for t in pending] == [second]

    @pytest.mark.asyncio
    async def test_limit(self, queue_store, trade_factory):
        ids = [await queue_store.enqueue(trade_factory()) for _ in range(4)]

        pending = await queue_store.fetch_pending(limit=2)

        assert [t.id for t in pending] == ids[:2]

    @pytest.mark.asyncio
    async def test_count_pending(self, queue_store, trade_factory):
        ids = [await queue_store.enqueue(trade_factory()) for _ in range(3)]
        await queue_store.mark_processed(ids[0])

        assert await queue_store.count_pending() == 2


class TestMarkProcessed:

    @pytest.mark.asyncio
    async def test_mark_sets_flag(self, queue_store, buy_trade):
        trade_id = await queue_store.enqueue(buy_trade)

        assert await queue_store.mark_processed(trade_id) is True
        assert (await queue_store.get(trade_id)).processed is True

    @pytest.mark.asyncio
    async def test_mark_is_idempotent(self, queue_store, buy_trade):
        trade_id = await queue_store.enqueue(buy_trade)

        assert await queue_store.mark_processed(trade_id) is True
        assert await queue_store.mark_processed(trade_id) is False

        record = await queue_store.get(trade_id)
        assert record.processed is True
        assert await queue_store.fetch_pending() == []

    @pytest.mark.asyncio
    async def test_mark_only_touches_one_row(self, queue_store, trade_factory):
        first = await queue_store.enqueue(trade_factory())
        second = await queue_store.enqueue(trade_factory())

        await queue_store.mark_processed(second)

        assert (await queue_store.get(first)).processed is False

    @pytest.mark.asyncio
    async def test_unknown_id(self, queue_store):
        with pytest.raises(TradeNotFoundError) as exc_info:
            await queue_store.mark_processed(999)
        assert exc_info.value.trade_id == 999

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, queue_store):
        with pytest.raises(TradeNotFoundError):
            await queue_store.get(42)


class TestDurability:

    @pytest.mark.asyncio
    async def test_trades_survive_reconnect(self, db_path, trade_factory):
        from data.db import open_database

        settings = DatabaseSettings(url=sqlite_url(db_path))

        first = await open_database(settings)
        trade_id = await QueueStore(first).enqueue(trade_factory(account="durable"))
        await first.dispose()

        second = await open_database(settings)
        try:
            pending = await QueueStore(second).fetch_pending()
        finally:
            await second.dispose()

        assert [(t.id, t.account) for t in pending] == [(trade_id, "durable")]
