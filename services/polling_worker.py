"""
Polling Worker
==============

Timed loop that drains the pending-trade queue through the trade processor.

State machine: idle -> draining -> idle, until a stop signal arrives. The
stop signal is checked between ticks only, so a tick in progress always
finishes its batch.

A trade that fails is logged and left pending. It is retried on every
following tick with no limit, no backoff and no dead-letter queue.

License: MIT
"""

from __future__ import annotations

import asyncio
import signal
import time
from typing import Any

from core.enums import WorkerState
from core.exceptions import StorageError
from data.queue_store import QueueStore
from services.trade_processor import TradeProcessor
from utils.logger import get_logger

logger = get_logger(__name__)


class PollingWorker:
    """
    Drains pending trades on a fixed interval.

    Example:
        worker = PollingWorker(TradeProcessor(db), poll_interval=0.1)
        task = asyncio.create_task(worker.run())
        ...
        worker.stop()
        await task
    """

    def __init__(
        self,
        processor: TradeProcessor,
        poll_interval: float = 0.1,
        batch_size: int | None = None,
        queue_store: QueueStore | None = None,
    ):
        """
        Initialize the worker.

        Args:
            processor: Per-trade unit of work
            poll_interval: Seconds between ticks
            batch_size: Maximum trades per tick (None drains everything pending)
            queue_store: Queue to scan (defaults to the processor's)
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.processor = processor
        self.queue_store = queue_store or processor.queue_store
        self.poll_interval = poll_interval
        self.batch_size = batch_size

        self._state = WorkerState.IDLE
        self._stop_event = asyncio.Event()

        # Counters
        self._ticks = 0
        self._processed_total = 0
        self._trade_failures = 0
        self._fetch_failures = 0
        self._started_at: float | None = None
        self._last_tick_at: float | None = None

    @property
    def state(self) -> WorkerState:
        return self._state

    async def run_once(self) -> int:
        """
        Execute one poll tick.

        Returns:
            Number of trades applied during this tick (0 is a normal outcome)
        """
        self._state = WorkerState.DRAINING
        self._ticks += 1
        try:
            try:
                trades = await self.queue_store.fetch_pending(limit=self.batch_size)
            except StorageError as e:
                self._fetch_failures += 1
                logger.error(f"Error fetching trades: {e}")
                return 0

            processed = 0
            for trade in trades:
                try:
                    if await self.processor.process(trade):
                        processed += 1
                except StorageError as e:
                    self._trade_failures += 1
                    logger.error(f"Error processing trade #{trade.id} ({trade.account}): {e}")
                except Exception:
                    self._trade_failures += 1
                    logger.exception(f"Unexpected error processing trade #{trade.id} ({trade.account})")

            self._processed_total += processed
            if processed:
                logger.info(f"Processed {processed} trades")
            return processed
        finally:
            self._last_tick_at = time.time()
            if self._state == WorkerState.DRAINING:
                self._state = WorkerState.IDLE

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """
        Tick every ``poll_interval`` seconds until stopped.

        Args:
            stop_event: External stop signal (defaults to the one set by ``stop()``)
        """
        if stop_event is not None:
            self._stop_event = stop_event

        self._started_at = time.time()
        self._state = WorkerState.IDLE
        logger.info(f"Worker started with polling interval: {self.poll_interval}s")

        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    await self.run_once()
        finally:
            self._state = WorkerState.STOPPED
            logger.info("Worker stopping")

    def stop(self) -> None:
        """Signal the loop to exit after the current tick."""
        self._stop_event.set()

    def install_signal_handlers(self) -> None:
        """Stop on SIGINT / SIGTERM."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.stop)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                pass

    def get_status(self) -> dict[str, Any]:
        """Get worker status."""
        return {
            "state": self._state.value,
            "poll_interval": self.poll_interval,
            "batch_size": self.batch_size,
            "ticks": self._ticks,
            "processed_total": self._processed_total,
            "trade_failures": self._trade_failures,
            "fetch_failures": self._fetch_failures,
            "started_at": self._started_at,
            "last_tick_at": self._last_tick_at,
        }
