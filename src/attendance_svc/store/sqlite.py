"""SQLite-backed key-value store.

An embedded transactional backend for deployments that need the primary
copy to survive restarts without an external cache server.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from .base import KeyValueStore, StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "attendance_requests.db"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


def init_db(db_path: str | Path = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Open the database and create the key-value table if missing."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return conn


@contextmanager
def get_db(db_path: str | Path = DEFAULT_DB_PATH) -> Generator[sqlite3.Connection, None, None]:
    """Get a database connection as a context manager."""
    conn = init_db(db_path)
    try:
        yield conn
    finally:
        conn.close()


class SqliteStore(KeyValueStore):
    """
    Key-value store over a single SQLite table.

    Each call opens its own connection on a worker thread, so the store is
    safe to use from the event loop without sharing connections.
    """

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)

    def _get_sync(self, key: str) -> bytes | None:
        with get_db(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return bytes(row[0]) if row else None

    def _put_sync(self, key: str, value: bytes) -> None:
        with get_db(self.db_path) as conn:
            with conn:
                conn.execute(
                    "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                    (key, sqlite3.Binary(value)),
                )

    def _delete_sync(self, key: str) -> bool:
        with get_db(self.db_path) as conn:
            with conn:
                cur = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            return cur.rowcount > 0

    async def get(self, key: str) -> bytes | None:
        try:
            return await asyncio.to_thread(self._get_sync, key)
        except sqlite3.Error as e:
            raise StoreReadError(f"SQLite read failed for {key}: {e}") from e

    async def put(self, key: str, value: bytes) -> None:
        try:
            await asyncio.to_thread(self._put_sync, key, value)
        except sqlite3.Error as e:
            raise StoreWriteError(f"SQLite write failed for {key}: {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._delete_sync, key)
        except sqlite3.Error as e:
            raise StoreWriteError(f"SQLite delete failed for {key}: {e}") from e
