"""
SQLite store handle for Item Admin.

`ItemStore` is constructed explicitly, opened at application startup and
closed at shutdown. It owns one connection, serialized by a lock, and creates
the `items` table on open.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from config import get_logger


logger = get_logger("database")


class StoreError(RuntimeError):
    """Raised when the item store is unavailable or a statement fails."""


def _connect(db_path: str) -> sqlite3.Connection:
    """Create a SQLite connection with recommended settings."""

    conn = sqlite3.connect(
        db_path,
        check_same_thread=False,
        isolation_level=None,  # autocommit; we use explicit BEGIN for transactions
        timeout=30,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


_SCHEMA = """
CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    stack_size INTEGER NOT NULL,
    equipable_slot TEXT NOT NULL,
    targettable INTEGER NOT NULL,
    consumable INTEGER NOT NULL,
    effects TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class ItemStore:
    """Explicitly managed handle to the items database."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> "ItemStore":
        """Open the connection and make sure the schema exists."""

        with self._lock:
            if self._conn is not None:
                return self
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = _connect(self.db_path)
            except sqlite3.Error as e:
                raise StoreError(f"Could not open item store at {self.db_path}: {e}") from e
            try:
                conn.execute(_SCHEMA)
            except sqlite3.Error as e:
                conn.close()
                raise StoreError(f"Could not open item store at {self.db_path}: {e}") from e
            self._conn = conn
        logger.info("Item store opened at %s", self.db_path)
        return self

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""

        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info("Item store closed")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the open connection while holding the store lock."""

        with self._lock:
            if self._conn is None:
                raise StoreError("Item store is not open.")
            yield self._conn

    def __enter__(self) -> "ItemStore":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()
