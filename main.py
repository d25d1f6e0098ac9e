#!/usr/bin/env python3
"""
Trade Queue Service - Entry Point
=================================

Two roles share one database:

- server: HTTP API accepting trades and serving per-account stats
- worker: polling loop folding queued trades into the stats

Usage:
    # API on :8080 against ./data.db
    python main.py server --db data.db --listen 8080

    # API with the worker running in the same process
    python main.py server --with-worker

    # Worker polling every 100ms
    python main.py worker --db data.db --poll 0.1

    # Create the schema and exit
    python main.py initdb --db data.db

License: MIT
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from config.settings import Settings, get_settings, sqlite_url
from core.exceptions import StorageError
from data.db import open_database
from services.polling_worker import PollingWorker
from services.trade_processor import TradeProcessor
from utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def listen_port(value: str) -> int:
    """Parse ``--listen`` as a port, accepting ``8080`` or ``:8080``."""
    try:
        port = int(value.lstrip(":"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid listen port: '{value}'")
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError(f"listen port out of range: {port}")
    return port


def build_settings(args: argparse.Namespace) -> Settings:
    """Apply command line overrides on top of environment settings."""
    settings = get_settings()

    if getattr(args, "db", None):
        database = settings.database.model_copy(update={"url": sqlite_url(args.db)})
        settings = settings.model_copy(update={"database": database})

    if getattr(args, "poll", None) is not None:
        if args.poll <= 0:
            raise SystemExit("--poll must be positive")
        worker = settings.worker.model_copy(update={"poll_interval": args.poll})
        settings = settings.model_copy(update={"worker": worker})

    if getattr(args, "listen", None) is not None:
        api = settings.api.model_copy(update={"port": args.listen})
        settings = settings.model_copy(update={"api": api})

    return settings


async def run_worker(settings: Settings) -> int:
    """Run the polling worker until SIGINT / SIGTERM."""
    try:
        database = await open_database(settings.database)
    except StorageError as e:
        logger.error(f"Failed to open database: {e}")
        return 1

    worker = PollingWorker(
        TradeProcessor(database),
        poll_interval=settings.worker.poll_interval,
        batch_size=settings.worker.batch_size,
    )
    worker.install_signal_handlers()

    try:
        await worker.run()
    finally:
        await database.dispose()
    return 0


async def init_database(settings: Settings) -> int:
    """Create the schema and exit."""
    try:
        database = await open_database(settings.database)
    except StorageError as e:
        logger.error(f"Failed to open database: {e}")
        return 1
    await database.dispose()
    logger.info("Schema created")
    return 0


def run_server(settings: Settings, with_worker: bool) -> int:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from api.main import create_app

    app = create_app(settings, run_worker=with_worker or settings.api.run_worker)
    logger.info(f"Starting server on {settings.api.host}:{settings.api.port}")
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.logging.level.lower(),
    )
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Trade queue and per-account stats service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  TRADEQ_DB_URL               SQLAlchemy async URL (overridden by --db)
  TRADEQ_WORKER_POLL_INTERVAL Seconds between worker ticks
  TRADEQ_WORKER_BATCH_SIZE    Maximum trades per tick
  TRADEQ_LOG_LEVEL            DEBUG, INFO, WARNING, ERROR
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    server_parser = subparsers.add_parser("server", help="Run the HTTP API")
    server_parser.add_argument("--db", type=str, help="Path to SQLite database")
    server_parser.add_argument("--listen", type=listen_port, help="HTTP listen port (8080 or :8080)")
    server_parser.add_argument(
        "--with-worker",
        action="store_true",
        help="Run the polling worker in the API process",
    )

    worker_parser = subparsers.add_parser("worker", help="Run the polling worker")
    worker_parser.add_argument("--db", type=str, help="Path to SQLite database")
    worker_parser.add_argument("--poll", type=float, help="Polling interval in seconds")

    initdb_parser = subparsers.add_parser("initdb", help="Create the schema")
    initdb_parser.add_argument("--db", type=str, help="Path to SQLite database")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = build_settings(args)
    configure_logging(settings.logging)

    if args.command == "server":
        return run_server(settings, args.with_worker)
    elif args.command == "worker":
        return asyncio.run(run_worker(settings))
    elif args.command == "initdb":
        return asyncio.run(init_database(settings))

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
