"""
Database schema helpers.

The table itself is created in `database/connection.py` when the store opens.
This module holds the column layout and the JSON helpers used for the
serialized `effects` column.
"""

from __future__ import annotations

import json
import math
from typing import Any


ITEM_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "description",
    "stack_size",
    "equipable_slot",
    "targettable",
    "consumable",
    "effects",
)


def dumps_json(value: Any) -> str:
    """Serialize a Python object to compact JSON for storage."""

    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def loads_json(text: str | None) -> Any:
    """Deserialize JSON from the database; returns None for NULL/empty."""

    if not text:
        return None
    return json.loads(text)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-finite number {token} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} is out of range")
    return value


def loads_finite_json(text: str) -> Any:
    """Strict JSON decode: NaN, Infinity and overflowing floats raise ValueError."""

    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)
