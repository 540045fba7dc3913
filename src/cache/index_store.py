# src/cache/index_store.py — v1
"""Persisted index of cached resources with a memoized in-memory copy.

The whole index lives in one JSON blob under a fixed key of a
BaseKeyValueStore. It is read once per IndexStore instance; afterwards
the memoized copy is authoritative and every save rewrites the blob.
"""

from __future__ import annotations

import asyncio
import json
import logging

from pydantic import ValidationError

from imgcache.cache.errors import SerializationError
from imgcache.cache.models import CacheEntry, Index
from imgcache.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)


class IndexStore:
    """Content key -> CacheEntry mapping backed by a key-value store."""

    def __init__(self, kv_store: BaseKeyValueStore, index_key: str) -> None:
        self._kv = kv_store
        self._index_key = index_key
        self._memo: Index | None = None
        self._write_lock = asyncio.Lock()

    @property
    def index_key(self) -> str:
        return self._index_key

    async def load(self) -> Index:
        """Return the index, reading persistent storage on first use only.

        A missing or empty blob yields an empty index. A corrupt blob is
        logged and also treated as empty so the cache stays usable.
        """
        if self._memo is not None:
            return self._memo

        raw = await self._kv.get(self._index_key)
        try:
            loaded = parse_index(raw)
        except SerializationError as e:
            logger.warning("Discarding unreadable cache index %s: %s", self._index_key, e)
            loaded = {}

        # A concurrent load may have finished first; keep whichever won.
        if self._memo is None:
            self._memo = loaded
        return self._memo

    async def save(self, next_index: Index) -> None:
        """Replace the memoized index and persist it as a whole.

        The memoized copy is swapped before any suspension point. Writes
        are serialized so the last blob written is the newest snapshot.
        """
        self._memo = next_index
        async with self._write_lock:
            await self._kv.set(self._index_key, dump_index(self._memo))

    async def add(self, key: str, entry: CacheEntry) -> None:
        """Merge one entry into the latest index and persist it."""
        current = await self.load()
        await self.save({**current, key: entry})

    async def get(self, key: str) -> CacheEntry | None:
        """Look up a single entry."""
        return (await self.load()).get(key)


def parse_index(raw: str | None) -> Index:
    """Parse a persisted index blob.

    Entries that fail validation are dropped individually.

    Raises:
        SerializationError: If the blob is not a JSON object.
    """
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Index blob is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SerializationError(
            f"Index blob must be a JSON object, got {type(data).__name__}"
        )

    index: Index = {}
    for key, value in data.items():
        try:
            index[key] = CacheEntry.model_validate(value)
        except ValidationError as e:
            logger.warning("Dropping invalid index entry %s: %s", key, e)
    return index


def dump_index(index: Index) -> str:
    """Serialize an index to its persisted JSON form."""
    return json.dumps(
        {key: entry.model_dump(mode="json") for key, entry in index.items()}
    )
