# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides settings rooted in tmp_path, an in-memory index store, and a
mock HTTP layer built on httpx.MockTransport. No network access.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from imgcache.cache.index_store import IndexStore
from imgcache.cache.service import ImageCache
from imgcache.config.settings import Settings
from imgcache.http.auth import StaticHeaderProvider
from imgcache.http.downloader import Downloader
from imgcache.storage.memory_kv_store import MemoryKeyValueStore
from tests.samples import PNG_BYTES


class FakeImageServer:
    """Request handler for httpx.MockTransport serving canned images."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, str | None]] = {}
        self.calls: list[httpx.Request] = []
        self.redirects: dict[str, tuple[int, str]] = {}
        self.delay: float = 0.0

    def add(
        self,
        url: str,
        body: bytes = PNG_BYTES,
        content_type: str | None = "image/png",
        status: int = 200,
    ) -> str:
        self.routes[url] = (status, body, content_type)
        return url

    def redirect(self, url: str, target: str, status: int = 302) -> str:
        self.redirects[url] = (status, target)
        return url

    def count(self, url: str) -> int:
        return sum(1 for r in self.calls if str(r.url) == url)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if str(request.url) in self.redirects:
            status, target = self.redirects[str(request.url)]
            return httpx.Response(
                status,
                headers={"location": target, "content-type": "text/html"},
                content=b"<html>moved</html>",
            )
        status, body, content_type = self.routes.get(
            str(request.url), (404, b"not found", "text/plain")
        )
        headers = {"content-type": content_type} if content_type else {}
        return httpx.Response(status, headers=headers, content=body)


# === FIXTURES: Configuration ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with every path inside tmp_path and an in-memory index."""
    return Settings(
        _env_file=None,
        cache_root=tmp_path / "cache",
        kv_backend="memory",
        kv_root=tmp_path / "kv",
    )


@pytest.fixture
def cache_dir(settings: Settings) -> Path:
    return settings.cache_dir


# === FIXTURES: Collaborators ===


@pytest.fixture
def server() -> FakeImageServer:
    return FakeImageServer()


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def index_store(kv_store: MemoryKeyValueStore) -> IndexStore:
    return IndexStore(kv_store, "TEST_INDEX")


@pytest_asyncio.fixture
async def http_client(server: FakeImageServer):
    async with httpx.AsyncClient(transport=httpx.MockTransport(server)) as client:
        yield client


@pytest.fixture
def make_cache(
    cache_dir: Path, kv_store: MemoryKeyValueStore, http_client: httpx.AsyncClient
) -> Callable[..., ImageCache]:
    """Build an ImageCache over the shared kv store and mock server.

    Each call returns a fresh instance (fresh memoized index), which
    stands in for a process restart.
    """

    def _make(headers: dict[str, str] | None = None, **kwargs) -> ImageCache:
        downloader = Downloader(
            http_client, header_provider=StaticHeaderProvider(headers or {})
        )
        return ImageCache(
            root=cache_dir,
            index_store=IndexStore(kv_store, "TEST_INDEX"),
            downloader=downloader,
            **kwargs,
        )

    return _make


@pytest.fixture
def cache(make_cache) -> ImageCache:
    return make_cache()
