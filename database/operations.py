"""
CRUD operations for Item Admin.

This module centralizes all SQL statements so the pipeline and API layers only
deal with row mappings.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from database.connection import ItemStore, StoreError
from database.models import ITEM_COLUMNS


INSERTED = "inserted"
UNCHANGED = "unchanged"
REPLACED = "replaced"

_PLACEHOLDERS = ", ".join("?" for _ in ITEM_COLUMNS)
_COLUMN_LIST = ", ".join(ITEM_COLUMNS)
_UPDATE_SET = ", ".join(f"{c} = excluded.{c}" for c in ITEM_COLUMNS if c != "id")


def _row_values(row: dict[str, Any]) -> tuple[Any, ...]:
    try:
        return tuple(row[c] for c in ITEM_COLUMNS)
    except KeyError as e:
        raise StoreError(f"Item row is missing column {e.args[0]!r}.") from e


def upsert_item(store: ItemStore, row: dict[str, Any], *, policy: str = "ignore") -> str:
    """
    Insert an item row keyed on `id`.

    With policy "ignore" an existing row is left untouched; with "replace" its
    columns are overwritten. Returns INSERTED, UNCHANGED or REPLACED.
    """

    values = _row_values(row)
    with store.connection() as conn:
        try:
            conn.execute("BEGIN;")
            exists = conn.execute("SELECT 1 FROM items WHERE id = ?;", (row["id"],)).fetchone() is not None
            if policy == "replace":
                conn.execute(
                    f"INSERT INTO items ({_COLUMN_LIST}) VALUES ({_PLACEHOLDERS}) "
                    f"ON CONFLICT(id) DO UPDATE SET {_UPDATE_SET};",
                    values,
                )
            else:
                conn.execute(
                    f"INSERT INTO items ({_COLUMN_LIST}) VALUES ({_PLACEHOLDERS}) "
                    "ON CONFLICT(id) DO NOTHING;",
                    values,
                )
            conn.execute("COMMIT;")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK;")
            raise StoreError(f"Failed to upsert item {row['id']!r}: {e}") from e

    if not exists:
        return INSERTED
    return REPLACED if policy == "replace" else UNCHANGED


def list_items(store: ItemStore) -> list[dict[str, Any]]:
    """Return every stored item row in insertion order."""

    with store.connection() as conn:
        try:
            rows = conn.execute(f"SELECT {_COLUMN_LIST} FROM items ORDER BY rowid;").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read items: {e}") from e
    return [dict(r) for r in rows]


def count_items(store: ItemStore) -> int:
    """Return the number of stored items."""

    with store.connection() as conn:
        try:
            row = conn.execute("SELECT COUNT(*) AS n FROM items;").fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to count items: {e}") from e
    return int(row["n"]) if row else 0
