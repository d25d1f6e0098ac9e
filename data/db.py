"""
Database Layer
==============

Async SQLAlchemy engine and session management shared by the queue and
stats stores.

Features:
- One AsyncEngine (connection pool) per process
- Fresh AsyncSession per unit of work, nothing cached across calls
- Transaction helper that commits or rolls back as one unit
- SQLAlchemy errors surfaced as StorageError

License: MIT
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from config.settings import DatabaseSettings, get_settings
from core.exceptions import StorageError
from utils.logger import get_logger

logger = get_logger(__name__)

# Base class for tables
Base = declarative_base()


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy errors raised inside the block as StorageError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.debug(f"Storage error in {operation}: {e}")
        raise StorageError(operation, str(e)) from e


class Database:
    """
    Owner of the engine and session factory.

    Example:
        db = Database(settings.database)
        await db.connect()
        await db.init_db()

        async with db.transaction("enqueue") as session:
            session.add(row)
    """

    def __init__(self, config: DatabaseSettings | None = None):
        """
        Initialize Database.

        Args:
            config: Database configuration (defaults to global settings)
        """
        self.config = config or get_settings().database
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

        # Set when every session shares one DBAPI connection (in-memory SQLite)
        self._exclusive_lock: asyncio.Lock | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StorageError("engine", "database is not connected")
        return self._engine

    async def connect(self) -> None:
        """Create the engine and session factory. Safe to call twice."""
        if self._engine is not None:
            return

        connect_args = {}
        if self.config.is_sqlite:
            connect_args["timeout"] = self.config.busy_timeout

        with storage_errors("connect"):
            self._engine = create_async_engine(
                self.config.url,
                echo=self.config.echo,
                connect_args=connect_args,
            )

        if self.config.is_sqlite and self.config.sqlite_wal:
            event.listen(self._engine.sync_engine, "connect", _enable_wal)

        if isinstance(self._engine.sync_engine.pool, StaticPool):
            self._exclusive_lock = asyncio.Lock()

        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.info(f"Database configured: {self._engine.url.render_as_string(hide_password=True)}")

    async def init_db(self) -> None:
        """Create tables if they do not exist (idempotent)."""
        from data import models  # noqa: F401  registers tables on Base

        with storage_errors("init_db"):
            async with self._exclusive(), self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        logger.debug("Schema ready")

    async def ping(self) -> None:
        """Round-trip to storage. Raises StorageError when unreachable."""
        with storage_errors("ping"):
            async with self._exclusive(), self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        """
        Hold the shared connection for a whole unit of work.

        With a single pooled connection, two sessions would otherwise share one
        transaction, and a rollback in one would discard the commits of the other.
        """
        if self._exclusive_lock is None:
            yield
            return
        async with self._exclusive_lock:
            yield

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Plain session for reads. Serialized when the engine has one connection."""
        if self._session_factory is None:
            raise StorageError("session", "database is not connected")
        async with self._exclusive(), self._session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self, operation: str = "transaction") -> AsyncIterator[AsyncSession]:
        """
        Session inside one transaction.

        Commits when the block exits normally; any exception rolls back every
        write made through the session.
        """
        async with self.session() as session:
            with storage_errors(operation):
                async with session.begin():
                    yield session

    async def dispose(self) -> None:
        """Close all pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._exclusive_lock = None
            logger.debug("Database disposed")


def _enable_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


async def open_database(config: DatabaseSettings | None = None) -> Database:
    """Connect and create the schema; the startup path of every process."""
    database = Database(config)
    await database.connect()
    try:
        await database.init_db()
    except StorageError:
        await database.dispose()
        raise
    return database
