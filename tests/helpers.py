"""Shared fixtures for the Item Admin tests."""

from __future__ import annotations

import copy
import json
from typing import Any


def make_item(item_id: str = "potion-small", **overrides: Any) -> dict[str, Any]:
    """Return a valid wire-format item, with top-level overrides applied."""

    item: dict[str, Any] = {
        "id": item_id,
        "name": "Small Potion",
        "description": "Restores a little health.",
        "stackSize": 10,
        "equipableSlot": "POCKET",
        "targettable": False,
        "consumable": True,
        "effects": {"vitals": {"health": {"current": 25}}},
    }
    item.update(copy.deepcopy(overrides))
    return item


class FakeUpload:
    """Minimal stand-in for starlette's UploadFile."""

    def __init__(self, filename: str, payload: Any = None, *, raw: bytes | None = None) -> None:
        self.filename = filename
        self._data = raw if raw is not None else json.dumps(payload).encode("utf-8")
        self.closed = False

    async def read(self, size: int = -1) -> bytes:
        return self._data

    async def close(self) -> None:
        self.closed = True
