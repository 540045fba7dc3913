# src/cache/service.py — v1
"""Image cache service: lookup, fetch and batch warm for remote images.

Usage:
    cache = create_image_cache(settings)
    path = await cache.get_local_path_if_cached(url)
    if path is None:
        path = await cache.ensure_cached(url)

One ImageCache instance owns the memoized index and the in-flight
registry; construct it once per process and pass it to callers.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from imgcache.cache.directory import ensure_directory
from imgcache.cache.inflight import InFlightRegistry
from imgcache.cache.index_store import IndexStore
from imgcache.cache.keys import derive_key
from imgcache.cache.models import CacheEntry, WarmOutcome
from imgcache.http.downloader import Downloader
from imgcache.http.locators import build_resource_locator
from imgcache.logging.context import (
    operation_context,
    set_fetch_context,
    set_operation_context,
)

logger = logging.getLogger(__name__)


class ImageCache:
    """Content-addressable local cache for remotely hosted images."""

    def __init__(
        self,
        root: Path | str,
        index_store: IndexStore,
        downloader: Downloader,
        key_algorithm: str = "sha256",
        warm_leading_count: int = 3,
        base_url: str = "",
    ) -> None:
        self._root = Path(root).expanduser()
        self._index = index_store
        self._downloader = downloader
        self._key_algorithm = key_algorithm
        self._warm_leading_count = warm_leading_count
        self._base_url = base_url
        self._inflight = InFlightRegistry()
        self._owned_resources: list = []

    @property
    def root(self) -> Path:
        return self._root

    @property
    def index_store(self) -> IndexStore:
        return self._index

    @property
    def inflight(self) -> InFlightRegistry:
        return self._inflight

    def key_for(self, locator: str) -> str:
        """Content key used as the filename stem for locator."""
        return derive_key(locator, self._key_algorithm)

    def locator_for(self, raw: str | None) -> str | None:
        """Build the remote locator for a stored image reference.

        Returns None for empty input.

        Raises:
            ValueError: If no base URL was configured (REMOTE_BASE_URL).
        """
        if not self._base_url:
            raise ValueError("REMOTE_BASE_URL is required to build image locators")
        return build_resource_locator(self._base_url, raw)

    async def get_local_path_if_cached(self, locator: str | None) -> str | None:
        """Return the local path of a cached locator, or None on a miss.

        Read-only: no download and no index mutation. An index entry whose
        file has been deleted externally counts as a miss.
        """
        if not locator:
            return None

        with operation_context("resolve"):
            key = self.key_for(locator)
            await ensure_directory(self._root)
            entry = (await self._index.load()).get(key)
            if entry is None:
                return None

            if await _file_exists(entry.local_path):
                return entry.local_path
            logger.debug("Dangling index entry for %s: %s", locator, entry.local_path)
            return None

    async def ensure_cached(self, locator: str) -> str:
        """Return a local path for locator, downloading it if needed.

        Concurrent calls for the same locator share a single download and
        receive the same path or the same exception.

        Raises:
            ValueError: If locator is empty.
            DirectoryError, NetworkError, HttpStatusError, FileSystemError:
                On any unrecoverable failure; nothing is added to the index.
        """
        if not locator:
            raise ValueError("locator must be a non-empty string")

        await ensure_directory(self._root)
        return await self._inflight.run(locator, lambda: self._fetch(locator))

    async def warm_all(
        self, locators: Iterable[str | None], limit: int | None = None
    ) -> list[WarmOutcome]:
        """Cache every locator independently and report one outcome each.

        Empty entries are skipped. When ``limit`` is given only the first
        ``limit`` remaining locators are warmed. Per-item failures become
        rejected outcomes and never propagate.
        """
        targets = [loc for loc in locators if loc]
        if limit is not None:
            targets = targets[:limit]
        if not targets:
            return []

        with operation_context("warm"):
            results = await asyncio.gather(
                *(self.ensure_cached(loc) for loc in targets),
                return_exceptions=True,
            )

        outcomes: list[WarmOutcome] = []
        for loc, result in zip(targets, results):
            if isinstance(result, Exception):
                outcomes.append(WarmOutcome(
                    locator=loc, status="rejected", error=str(result), exception=result,
                ))
            elif isinstance(result, BaseException):
                raise result
            else:
                outcomes.append(WarmOutcome(locator=loc, status="fulfilled", path=result))

        failed = sum(1 for o in outcomes if not o.ok)
        logger.info("Warmed %d images (%d failed)", len(outcomes), failed)
        return outcomes

    async def warm_leading(self, locators: Iterable[str | None]) -> list[WarmOutcome]:
        """Warm only the first WARM_LEADING_COUNT non-empty locators."""
        return await self.warm_all(locators, limit=self._warm_leading_count)

    def own(self, resource) -> None:
        """Register a resource (client, store) closed by aclose()."""
        self._owned_resources.append(resource)

    async def aclose(self) -> None:
        """Close resources created on behalf of this cache.

        Every owned resource gets a close attempt; the first failure is
        re-raised once all of them have been tried.
        """
        errors: list[Exception] = []
        while self._owned_resources:
            resource = self._owned_resources.pop()
            close = getattr(resource, "aclose", None) or getattr(resource, "close", None)
            if close is None:
                logger.warning("Owned resource %r has no close method", resource)
                continue
            try:
                result = close()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("Failed to close %r: %s", resource, e)
                errors.append(e)
        if errors:
            raise errors[0]

    async def __aenter__(self) -> ImageCache:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _fetch(self, locator: str) -> str:
        """Body of the shared fetch task for one locator."""
        key = self.key_for(locator)
        set_fetch_context(locator, key)
        set_operation_context("fetch")

        # A fetch that finished just before this one may already have
        # published the file.
        entry = (await self._index.load()).get(key)
        if entry is not None and await _file_exists(entry.local_path):
            logger.debug("Cache hit for %s", locator)
            return entry.local_path

        result = await self._downloader.download(locator, self._root, key)

        await self._index.add(key, CacheEntry(
            remote_locator=locator,
            local_path=result.path,
            created_at=datetime.now(timezone.utc),
        ))
        return result.path


async def _file_exists(path: str) -> bool:
    return await asyncio.to_thread(Path(path).is_file)
