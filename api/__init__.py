"""
API Module
==========

REST API for the trade queue service using FastAPI.

Components:
- main: FastAPI application with all routes

Endpoints:
- POST /trades: Queue a trade
- GET /stats/{account}: Account aggregate
- GET /healthz: Liveness check
- GET /status: Queue depth and worker status

License: MIT
"""

from api.main import (
    app,
    create_app,
)

__all__ = [
    "app",
    "create_app",
]
