# src/storage/sqlite_kv_store.py — v1
"""SQLite-based key-value store (KV_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path

from imgcache.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteKeyValueStore(BaseKeyValueStore):
    """SQLite-backed key-value store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        # sqlite3 connections are not safe for concurrent use across threads
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        """Retrieve the value stored under key."""
        async with self._lock:
            row = await asyncio.to_thread(self._fetch, key)
        return None if row is None else row[0]

    async def set(self, key: str, value: str) -> None:
        """Store value under key (upsert)."""
        async with self._lock:
            await asyncio.to_thread(self._upsert, key, value)

    async def delete(self, key: str) -> None:
        """Remove the value stored under key."""
        async with self._lock:
            await asyncio.to_thread(self._remove, key)

    async def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def _fetch(self, key: str) -> tuple[str] | None:
        cursor = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
        return cursor.fetchone()

    def _upsert(self, key: str, value: str) -> None:
        self._conn.execute(
            """INSERT INTO kv (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET
                 value = excluded.value, updated_at = CURRENT_TIMESTAMP""",
            (key, value),
        )
        self._conn.commit()

    def _remove(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self._conn.commit()
