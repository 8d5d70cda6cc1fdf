"""FastAPI routes for the read-only program key API.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /                                     GET     Redirect to /api/program-keys
# /health                               GET     Liveness + collector status
# /api/program-keys                     GET     All keys, ordered by key
# /api/program-keys/{program_key}       GET     One key, 404 if unknown
# /api/stats                            GET     Totals and last update
#
# The key store is resolved from ``app.state.key_store`` (set in main.py's
# lifespan).  Store failures become a 500 with a fixed message; upstream
# fetch failures never reach this layer.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from fm4keys.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProgramKeyListResponse,
    ProgramKeyResponse,
    StatsResponse,
)
from fm4keys.interfaces.key_store import IKeyStore
from fm4keys.utils.errors import StoreError
from fm4keys.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Program Keys"])
system_router = APIRouter(tags=["System"])


def _get_key_store(request: Request) -> IKeyStore:
    store = getattr(request.app.state, "key_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Key store unavailable")
    return store


KeyStoreDep = Annotated[IKeyStore, Depends(_get_key_store)]


# ---------------------------------------------------------------------------
# Program keys
# ---------------------------------------------------------------------------


@router.get(
    "/program-keys",
    response_model=ProgramKeyListResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Get all program keys",
)
async def list_program_keys(store: KeyStoreDep) -> ProgramKeyListResponse:
    """Retrieve all discovered program keys with their metadata."""
    try:
        records = await store.get_all()
    except StoreError as exc:
        _logger.error("program_keys_fetch_failed", error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to fetch program keys") from exc

    return ProgramKeyListResponse(count=len(records), data=records)


@router.get(
    "/program-keys/{program_key}",
    response_model=ProgramKeyResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Get specific program key",
)
async def get_program_key(program_key: str, store: KeyStoreDep) -> ProgramKeyResponse:
    """Retrieve one program key, e.g. ``4HB``.  Keys are case-sensitive."""
    try:
        record = await store.get_by_key(program_key)
    except StoreError as exc:
        _logger.error("program_key_fetch_failed", program_key=program_key, error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to fetch program key") from exc

    if record is None:
        raise HTTPException(status_code=404, detail="Program key not found")
    return ProgramKeyResponse(data=record)


@router.get(
    "/stats",
    response_model=StatsResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Get statistics",
    tags=["Statistics"],
)
async def get_stats(store: KeyStoreDep) -> StatsResponse:
    """Total keys, keys seen in the last 24 hours, and the latest update time."""
    try:
        stats = await store.get_stats()
    except StoreError as exc:
        _logger.error("stats_fetch_failed", error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to fetch statistics") from exc

    return StatsResponse(data=stats)


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@system_router.get("/", include_in_schema=False)
async def root() -> RedirectResponse:
    return RedirectResponse(url="/api/program-keys", status_code=302)


@system_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Report liveness and collector status without touching the key store."""
    started = getattr(request.app.state, "started_at", None)
    uptime = round(time.monotonic() - started, 3) if started is not None else 0.0

    scheduler = getattr(request.app.state, "scheduler", None)
    collector = scheduler.status() if scheduler is not None else {}

    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=uptime,
        collector=collector,
    )
