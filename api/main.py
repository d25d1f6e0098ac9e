"""
FastAPI Application
===================

REST API for the trade queue service.

Provides endpoints for:
- Trade submission (queued, aggregated asynchronously)
- Per-account stats
- Liveness and status

License: MIT
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from config.settings import Settings, get_settings
from core.exceptions import StorageError
from data.db import Database, open_database
from data.schema import TradeCreate
from services.polling_worker import PollingWorker
from services.trade_processor import TradeProcessor
from services.trade_service import TradeService
from utils.logger import get_logger

logger = get_logger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# PYDANTIC MODELS (Request/Response Schemas)
# =============================================================================

class TradeAccepted(BaseModel):
    """Trade queued for aggregation."""
    id: int
    status: str = "queued"


class StatsResponse(BaseModel):
    """Account aggregate, profit rounded to cents."""
    account: str
    trades: int
    profit: float


class StatusResponse(BaseModel):
    """Service status."""
    status: str = "operational"
    version: str = API_VERSION
    pending_trades: Optional[int] = None
    worker: Optional[dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.now)


# =============================================================================
# APPLICATION STATE
# =============================================================================

class AppState:
    """Application state manager."""

    def __init__(self, settings: Settings, run_worker: bool):
        self.settings = settings
        self.run_worker = run_worker
        self.database: Database | None = None
        self.service: TradeService | None = None
        self.worker: PollingWorker | None = None
        self._worker_task: asyncio.Task | None = None

    async def initialize(self) -> None:
        """Open storage and, when configured, start the embedded worker."""
        self.database = await open_database(self.settings.database)
        self.service = TradeService(self.database)

        if self.run_worker:
            self.worker = PollingWorker(
                TradeProcessor(self.database),
                poll_interval=self.settings.worker.poll_interval,
                batch_size=self.settings.worker.batch_size,
            )
            self._worker_task = asyncio.create_task(self.worker.run())

    async def shutdown(self) -> None:
        """Stop the worker between ticks and close storage."""
        if self.worker and self._worker_task:
            self.worker.stop()
            await self._worker_task
            self._worker_task = None

        if self.database:
            await self.database.dispose()


def get_state(request: Request) -> AppState:
    return request.app.state.trades


# =============================================================================
# ROUTES
# =============================================================================

router = APIRouter()


@router.post("/trades", status_code=202, response_model=TradeAccepted, tags=["Trades"])
async def submit_trade(trade: TradeCreate, state: AppState = Depends(get_state)):
    """Queue a trade. Stats reflect it once the worker has processed it."""
    try:
        trade_id = await state.service.submit_trade(trade)
    except StorageError as e:
        logger.error(f"Failed to enqueue trade for {trade.account}: {e}")
        raise HTTPException(status_code=500, detail="failed to enqueue trade")
    return TradeAccepted(id=trade_id)


@router.get("/stats/{account}", response_model=StatsResponse, tags=["Stats"])
async def account_stats(account: str, state: AppState = Depends(get_state)):
    """Get the aggregate for an account."""
    try:
        stats = await state.service.account_stats(account)
    except StorageError as e:
        logger.error(f"Failed to read stats for {account}: {e}")
        raise HTTPException(status_code=500, detail="failed to get stats")

    return StatsResponse(
        account=stats.account,
        trades=stats.trade_count,
        profit=round(stats.cumulative_profit, 2),
    )


@router.get("/healthz", response_class=PlainTextResponse, tags=["Health"])
async def healthz(state: AppState = Depends(get_state)):
    """Liveness check: can storage be reached."""
    try:
        await state.service.ping()
    except StorageError as e:
        logger.warning(f"Health check failed: {e}")
        return PlainTextResponse("db error", status_code=503)
    return PlainTextResponse("OK")


@router.get("/status", response_model=StatusResponse, tags=["Health"])
async def system_status(state: AppState = Depends(get_state)):
    """Get queue depth and embedded worker status."""
    try:
        pending = await state.service.pending_count()
    except StorageError:
        return StatusResponse(status="degraded")

    return StatusResponse(
        pending_trades=pending,
        worker=state.worker.get_status() if state.worker else None,
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Settings | None = None, run_worker: bool | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the global settings)
        run_worker: Run the polling worker in-process (defaults to settings.api.run_worker)
    """
    settings = settings or get_settings()
    if run_worker is None:
        run_worker = settings.api.run_worker

    state = AppState(settings, run_worker)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management."""
        # Startup
        await state.initialize()
        yield
        # Shutdown
        await state.shutdown()

    app = FastAPI(
        title="Trade Queue API",
        description="Trade ingestion and per-account statistics",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.trades = state
    app.include_router(router)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed JSON and invalid payloads are both a 400."""
        logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"detail": "invalid trade payload"})

    return app


app = create_app()
