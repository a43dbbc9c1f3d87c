"""
/health endpoint.

Lightweight health check used by dashboards and deployment platforms.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool

from config import Settings
from database.connection import ItemStore, StoreError
from database.operations import count_items


router = APIRouter()


def _settings(request: Request) -> Settings:
    """Get Settings from app state."""

    s = getattr(request.app.state, "settings", None)
    if s is None:
        raise RuntimeError("App settings not initialized.")
    return s


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Return health status."""

    settings = _settings(request)
    store: ItemStore | None = getattr(request.app.state, "store", None)

    db_ok = True
    db_error = None
    items = None
    try:
        if store is None:
            raise StoreError("Item store not initialized.")
        items = await run_in_threadpool(count_items, store)
    except StoreError as e:
        db_ok = False
        db_error = str(e)

    return {
        "status": "ONLINE" if db_ok else "DEGRADED",
        "database": {"ok": db_ok, "path": settings.database_path, "items": items, "error": db_error},
        "conflict_policy": settings.conflict_policy,
    }
