# src/storage/memory_kv_store.py — v1
"""In-process key-value store (KV_BACKEND=memory).

Nothing survives the process; useful for tests and ephemeral caches.
"""

from __future__ import annotations

from imgcache.storage.base_kv_store import BaseKeyValueStore


class MemoryKeyValueStore(BaseKeyValueStore):
    """Dict-backed key-value store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
