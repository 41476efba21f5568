"""
FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import json
import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import bridge, health, ledger, splits, withdraw
from api.errors import APIError, api_error_handler, generic_error_handler, ledger_error_handler
from core.schemas.errors import LedgerException


# Configure logging; respects PRIVPAY_LOG_LEVEL env var and privpay.json log_level
def _resolve_log_level() -> int:
    """Resolve log level from env var or privpay.json, defaulting to INFO."""
    raw = os.getenv("PRIVPAY_LOG_LEVEL")
    if raw is None:
        cfg_path = Path.cwd() / "privpay.json"
        if cfg_path.exists():
            try:
                with open(cfg_path) as f:
                    raw = json.load(f).get("log_level")
            except (OSError, ValueError, AttributeError):
                raw = None
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="privpay API",
        description="""
HTTP API over one chain of the privacy payment ledger.

## Endpoints

- **GET /ledger/state** - Root, leaf count, pool balance and statistics
- **GET /ledger/roots/{root}** - Whether a root is accepted for proofs
- **GET /ledger/events** - Insertion event stream for witness tooling
- **POST /ledger/deposit** - Deposit funds behind a commitment
- **GET /nullifiers/{nullifier}** - Spent status of a nullifier
- **POST /withdraw** - Withdraw against a zero-knowledge proof
- **POST /splits/allocation** - Gas-weighted allocation suggestion
- **POST /splits** - Escrow a multi-destination split
- **GET /splits/{split_id}** - Split record
- **POST /splits/{split_id}/execute** - Deliver every leg of a split
- **POST /bridge/receive** - Inbound relayed message
- **GET /health** - Health check

## Errors

Domain errors return `{"ok": false, "error": {...}}` with status 400
(validation), 402 (insufficient funds), 403 (authorization), 409 (state
conflict), 422 (proof rejected) or 502 (relayer failure).
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(LedgerException, ledger_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(ledger.router)
    app.include_router(withdraw.router)
    app.include_router(splits.router)
    app.include_router(bridge.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
