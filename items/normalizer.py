"""
Conversion between the wire representation of an item and its database row.

This is the only place where `effects` changes shape: it is a structured
object on the wire and a JSON string at rest.
"""

from __future__ import annotations

from typing import Any, Mapping

from database.models import dumps_json, loads_json
from items.schema import Item


class RecordShapeError(ValueError):
    """Raised when a decoded upload is neither an object nor an array of objects."""


def to_persisted(item: Item) -> dict[str, Any]:
    """Return the database row for a validated item."""

    effects = item.effects.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "stack_size": item.stack_size,
        "equipable_slot": item.equipable_slot.value,
        "targettable": int(item.targettable),
        "consumable": int(item.consumable),
        "effects": dumps_json(effects),
    }


def to_wire(row: Mapping[str, Any]) -> dict[str, Any]:
    """Return the wire mapping for a stored row; null effects stay None."""

    return {
        "id": row["id"],
        "name": row["name"],
        "description": row["description"],
        "stackSize": row["stack_size"],
        "equipableSlot": row["equipable_slot"],
        "targettable": bool(row["targettable"]),
        "consumable": bool(row["consumable"]),
        "effects": loads_json(row["effects"]),
    }


def decode_records(payload: Any) -> list[Any]:
    """Flatten a decoded upload document into a list of candidate records."""

    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return list(payload)
    raise RecordShapeError(
        f"Expected a JSON object or an array of objects, got {type(payload).__name__}."
    )
