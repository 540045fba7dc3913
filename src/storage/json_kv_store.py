# src/storage/json_kv_store.py — v1
"""JSON file-based key-value store (default KV_BACKEND=json).

Each key is stored in its own JSON file under KV_ROOT. Writes go to a
temporary sibling first and are published with os.replace, so a crash
never leaves a half-written value behind.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from imgcache.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)


class JsonKeyValueStore(BaseKeyValueStore):
    """File-based key-value store using one JSON document per key."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> str | None:
        """Retrieve the value stored under key."""
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        """Store value under key atomically."""
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        """Remove the value stored under key."""
        await asyncio.to_thread(self._entry_path(key).unlink, missing_ok=True)

    def _read(self, key: str) -> str | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:  # bad JSON or bad UTF-8
            logger.warning("Failed to read key-value file %s: %s", path, e)
            return None
        value = data.get("value") if isinstance(data, dict) else None
        return value if isinstance(value, str) else None

    def _write(self, key: str, value: str) -> None:
        path = self._entry_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + f".tmp-{os.getpid()}")
        try:
            tmp.write_text(json.dumps({"key": key, "value": value}), encoding="utf-8")
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def _entry_path(self, key: str) -> Path:
        """Return file path for a key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
