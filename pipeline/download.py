"""Download responder: every stored item in wire form."""

from __future__ import annotations

from typing import Any

from fastapi.concurrency import run_in_threadpool

from database.connection import ItemStore
from database.operations import list_items
from items.normalizer import to_wire


async def fetch_items(store: ItemStore) -> list[dict[str, Any]]:
    """Return all items with `effects` decoded. Store failures propagate as StoreError."""

    rows = await run_in_threadpool(list_items, store)
    return [to_wire(r) for r in rows]
