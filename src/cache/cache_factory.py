# src/cache/cache_factory.py — v1
"""Factory wiring Settings into a ready-to-use ImageCache."""

from __future__ import annotations

import logging

import httpx

from imgcache.cache.index_store import IndexStore
from imgcache.cache.service import ImageCache
from imgcache.config.settings import Settings
from imgcache.http.auth import AuthHeaderProvider, settings_header_provider
from imgcache.http.downloader import Downloader
from imgcache.logging.logger import setup_logging_from_settings
from imgcache.storage.base_kv_store import BaseKeyValueStore
from imgcache.storage.kv_store_factory import create_kv_store

logger = logging.getLogger(__name__)


def create_image_cache(
    settings: Settings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    header_provider: AuthHeaderProvider | None = None,
    kv_store: BaseKeyValueStore | None = None,
    configure_logging: bool = False,
) -> ImageCache:
    """Build an ImageCache from settings.

    Args:
        settings: Application settings. Loaded from .env if None.
        client: Shared HTTP client. A new one is created (and closed by
            ImageCache.aclose) if None.
        header_provider: Source of auth headers. Built from
            AUTH_HEADER_NAME / AUTH_HEADER_VALUE if None.
        kv_store: Index storage backend. Built from KV_BACKEND if None.
        configure_logging: Apply the LOG_* settings to the ``imgcache``
            logger. Leave False when the host application owns logging.

    Returns:
        Configured ImageCache.
    """
    settings = settings or Settings()
    if configure_logging:
        setup_logging_from_settings(settings)
    owned: list = []

    if kv_store is None:
        kv_store = create_kv_store(settings)
        owned.append(kv_store)

    if client is None:
        client = httpx.AsyncClient(
            timeout=settings.download_timeout_s,
            follow_redirects=True,
        )
        owned.append(client)

    downloader = Downloader(
        client,
        header_provider=header_provider or settings_header_provider(settings),
        chunk_size=settings.download_chunk_size,
    )
    cache = ImageCache(
        root=settings.cache_dir,
        index_store=IndexStore(kv_store, settings.index_key),
        downloader=downloader,
        key_algorithm=settings.key_algorithm,
        warm_leading_count=settings.warm_leading_count,
        base_url=settings.remote_base_url,
    )
    for resource in owned:
        cache.own(resource)

    logger.debug(
        "Image cache ready: root=%s kv_backend=%s", settings.cache_dir, settings.kv_backend
    )
    return cache
