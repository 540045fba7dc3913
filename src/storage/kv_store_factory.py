# src/storage/kv_store_factory.py — v1
"""Factory for key-value store instantiation (KV_BACKEND setting)."""

from __future__ import annotations

from imgcache.config.settings import Settings
from imgcache.storage.base_kv_store import BaseKeyValueStore


def create_kv_store(settings: Settings | None = None) -> BaseKeyValueStore:
    """Instantiate the configured key-value backend.

    Args:
        settings: Application settings. Defaults to the JSON backend
            under the default KV root.

    Returns:
        Configured BaseKeyValueStore implementation.

    Raises:
        ValueError: If the backend is unsupported or misconfigured.
    """
    settings = settings or Settings(_env_file=None)  # type: ignore[call-arg]
    backend = settings.kv_backend

    if backend == "json":
        from imgcache.storage.json_kv_store import JsonKeyValueStore
        return JsonKeyValueStore(root=settings.kv_root)

    if backend == "sqlite":
        from imgcache.storage.sqlite_kv_store import SqliteKeyValueStore
        return SqliteKeyValueStore(db_path=settings.kv_root / "imgcache_kv.db")

    if backend == "redis":
        if not settings.kv_redis_url:
            raise ValueError("KV_REDIS_URL must be set when KV_BACKEND=redis")
        from imgcache.storage.redis_kv_store import RedisKeyValueStore
        return RedisKeyValueStore(redis_url=settings.kv_redis_url)

    if backend == "memory":
        from imgcache.storage.memory_kv_store import MemoryKeyValueStore
        return MemoryKeyValueStore()

    raise ValueError(f"Unsupported key-value backend: {backend!r}")
