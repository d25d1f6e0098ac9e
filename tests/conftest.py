"""
Pytest Configuration and Fixtures
==================================

Shared fixtures for the trade queue tests. Every test gets its own SQLite
file so producer and worker connections see the same durable store.

License: MIT
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import DatabaseSettings, Settings, WorkerSettings, sqlite_url
from data.db import Database, open_database
from data.queue_store import QueueStore
from data.schema import TradeCreate
from data.stats_store import StatsStore
from services.trade_processor import TradeProcessor


# =============================================================================
# CONFIGURATION
# =============================================================================

@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of a fresh SQLite database file."""
    return tmp_path / "trades.db"


@pytest.fixture
def db_settings(db_path: Path) -> DatabaseSettings:
    return DatabaseSettings(url=sqlite_url(db_path), busy_timeout=10.0)


@pytest.fixture
def settings(db_settings: DatabaseSettings) -> Settings:
    """Settings pointing at the per-test database with a fast poll."""
    return Settings(
        database=db_settings,
        worker=WorkerSettings(poll_interval=0.01),
    )


# =============================================================================
# STORAGE FIXTURES
# =============================================================================

@pytest_asyncio.fixture
async def database(db_settings: DatabaseSettings) -> AsyncIterator[Database]:
    """Connected database with the schema created."""
    db = await open_database(db_settings)
    yield db
    await db.dispose()


@pytest.fixture
def queue_store(database: Database) -> QueueStore:
    return QueueStore(database)


@pytest.fixture
def stats_store(database: Database) -> StatsStore:
    return StatsStore(database)


@pytest.fixture
def processor(database: Database, queue_store: QueueStore, stats_store: StatsStore) -> TradeProcessor:
    return TradeProcessor(database, queue_store, stats_store)


# =============================================================================
# DATA FIXTURES
# =============================================================================

def make_trade(
    account: str = "acc1",
    symbol: str = "ABCDEF",
    volume: float = 1.0,
    open: float = 1.0,
    close: float = 2.0,
    side: str = "buy",
) -> TradeCreate:
    """Build a valid trade payload (wire field names)."""
    return TradeCreate.model_validate({
        "account": account,
        "symbol": symbol,
        "volume": volume,
        "open": open,
        "close": close,
        "side": side,
    })


@pytest.fixture
def buy_trade() -> TradeCreate:
    """Buy of 1 lot from 1.0 to 2.0: +100000."""
    return make_trade()


@pytest.fixture
def sell_trade() -> TradeCreate:
    """Sell of 0.5 lots from 2.0 to 1.5: +25000."""
    return make_trade(volume=0.5, open=2.0, close=1.5, side="sell")


@pytest.fixture
def trade_factory():
    """Factory building trade payloads, see ``make_trade``."""
    return make_trade
