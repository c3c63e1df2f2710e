"""Health check endpoints exposed by the public API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from placefinder.api.dependencies import get_store
from placefinder.places.store import PlaceStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("", summary="Constant-time readiness probe")
def health_fast() -> dict[str, str]:
    """Simple readiness probe that avoids touching the database."""
    return {"status": "ok", "timestamp": _utc_timestamp()}


@router.get("/db", summary="Database connectivity check")
def health_db(store: PlaceStore = Depends(get_store)):
    """Deep health check: SELECT 1 plus row counts. Never calls the external provider."""
    try:
        store.ping()
        counts = store.counts()
    except Exception as exc:
        logger.error("Database health check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": "disconnected", "timestamp": _utc_timestamp()},
        )
    return {
        "status": "ok",
        "db": "connected",
        "placeCount": counts["places"],
        "categoryCount": counts["categories"],
        "timestamp": _utc_timestamp(),
    }
