# tests/integration/cache/test_int_image_cache.py — v1
"""Integration tests: ImageCache built by create_image_cache over real backends.

No external services required; HTTP goes through httpx.MockTransport.
Coverage targets: cache_factory.py, service.py, index_store.py,
json_kv_store.py, sqlite_kv_store.py, downloader.py.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import httpx
import pytest

from imgcache.cache.cache_factory import create_image_cache
from imgcache.cache.errors import HttpStatusError
from imgcache.cache.keys import derive_key
from imgcache.config.settings import Settings
from imgcache.http.auth import ClientHeaderProvider
from imgcache.logging.logger import TextFormatter
from tests.samples import PNG_BYTES


def _settings(tmp_path: Path, backend: str = "json", **overrides) -> Settings:
    return Settings(
        _env_file=None,
        cache_root=tmp_path / "cache",
        kv_backend=backend,
        kv_root=tmp_path / "kv",
        **overrides,
    )


class TestConcreteScenario:

    @pytest.mark.asyncio
    async def test_png_fetch_populates_index_and_disk(self, tmp_path, server, http_client):
        url = server.add("https://x/img1.png", PNG_BYTES, "image/png")
        settings = _settings(tmp_path)
        cache = create_image_cache(settings, client=http_client)

        path = await cache.ensure_cached(url)

        key = derive_key("https://x/img1.png")
        entry = (await cache.index_store.load())[key]
        assert entry.local_path == path
        assert entry.local_path.endswith(".png")
        assert Path(path).read_bytes() == PNG_BYTES
        await cache.aclose()

        blob = (tmp_path / "kv" / f"{settings.index_key}.json").read_text(encoding="utf-8")
        persisted = json.loads(json.loads(blob)["value"])
        assert persisted[key]["remote_locator"] == url


class TestRestart:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("backend", ["json", "sqlite"])
    async def test_index_survives_restart(self, tmp_path, server, http_client, backend):
        url = server.add("https://x/img1.png")
        settings = _settings(tmp_path, backend)

        first = create_image_cache(settings, client=http_client)
        path = await first.ensure_cached(url)
        await first.aclose()

        second = create_image_cache(settings, client=http_client)
        assert await second.get_local_path_if_cached(url) == path
        assert await second.ensure_cached(url) == path
        assert server.count(url) == 1
        await second.aclose()

    @pytest.mark.asyncio
    async def test_concurrent_different_keys_all_persisted(self, tmp_path, server, http_client):
        urls = [server.add(f"https://x/img{i}.png") for i in range(8)]
        server.delay = 0.01
        settings = _settings(tmp_path)

        first = create_image_cache(settings, client=http_client)
        await asyncio.gather(*(first.ensure_cached(u) for u in urls))
        await first.aclose()

        second = create_image_cache(settings, client=http_client)
        index = await second.index_store.load()
        assert {e.remote_locator for e in index.values()} == set(urls)
        await second.aclose()

    @pytest.mark.asyncio
    async def test_corrupt_index_is_recovered(self, tmp_path, server, http_client):
        settings = _settings(tmp_path)
        kv_dir = tmp_path / "kv"
        kv_dir.mkdir(parents=True)
        (kv_dir / f"{settings.index_key}.json").write_text(
            json.dumps({"key": settings.index_key, "value": "{corrupt"}), encoding="utf-8"
        )
        url = server.add("https://x/img1.png")

        cache = create_image_cache(settings, client=http_client)
        assert await cache.get_local_path_if_cached(url) is None
        path = await cache.ensure_cached(url)
        assert Path(path).exists()
        await cache.aclose()

    @pytest.mark.asyncio
    async def test_undecodable_index_file_is_recovered(self, tmp_path, server, http_client):
        settings = _settings(tmp_path)
        kv_dir = tmp_path / "kv"
        kv_dir.mkdir(parents=True)
        (kv_dir / f"{settings.index_key}.json").write_bytes(b"\xff\xfe{garbage")
        url = server.add("https://x/a.png")

        cache = create_image_cache(settings, client=http_client)
        assert await cache.get_local_path_if_cached(url) is None
        path = await cache.ensure_cached(url)
        assert await cache.get_local_path_if_cached(url) == path
        await cache.aclose()


class TestFactoryWiring:

    @pytest.mark.asyncio
    async def test_settings_headers_are_sent(self, tmp_path, server, http_client):
        url = server.add("https://x/img1.png")
        settings = _settings(
            tmp_path, "memory", auth_header_name="Identifier", auth_header_value="Franko",
        )
        cache = create_image_cache(settings, client=http_client)
        await cache.ensure_cached(url)
        assert server.calls[0].headers["Identifier"] == "Franko"

    @pytest.mark.asyncio
    async def test_shared_client_headers(self, tmp_path, server):
        transport = httpx.MockTransport(server)
        async with httpx.AsyncClient(transport=transport, headers={"Identifier": "Franko"}) as api:
            cache = create_image_cache(
                _settings(tmp_path, "memory"),
                client=api,
                header_provider=ClientHeaderProvider(api),
            )
            await cache.ensure_cached(server.add("https://x/img1.png"))
            await cache.aclose()
            assert not api.is_closed
        assert server.calls[0].headers["Identifier"] == "Franko"

    @pytest.mark.asyncio
    async def test_owned_client_closed(self, tmp_path):
        cache = create_image_cache(_settings(tmp_path, "memory"))
        assert cache.root == tmp_path / "cache" / "product-images"
        await cache.aclose()

    @pytest.mark.asyncio
    async def test_warm_then_resolve(self, tmp_path, server, http_client):
        good = server.add("https://x/good.png")
        bad = server.add("https://x/bad.png", status=404)
        cache = create_image_cache(_settings(tmp_path), client=http_client)

        outcomes = await cache.warm_all([good, bad])
        assert [o.status for o in outcomes] == ["fulfilled", "rejected"]
        assert isinstance(outcomes[1].exception, HttpStatusError)
        assert await cache.get_local_path_if_cached(good) == outcomes[0].path
        assert await cache.get_local_path_if_cached(bad) is None
        await cache.aclose()

    @pytest.mark.asyncio
    async def test_remote_base_url_builds_locators(self, tmp_path, server, http_client):
        base = "https://api.example/default/media/products-images"
        server.add(f"{base}/my%20phone.png")
        cache = create_image_cache(
            _settings(tmp_path, "memory", remote_base_url=base), client=http_client
        )
        locator = cache.locator_for("uploads/my phone.png")
        assert locator == f"{base}/my%20phone.png"
        path = await cache.ensure_cached(locator)
        assert Path(path).read_bytes() == PNG_BYTES
        await cache.aclose()

    @pytest.mark.asyncio
    async def test_configure_logging_applies_settings(self, tmp_path, http_client):
        settings = _settings(tmp_path, "memory", log_level="DEBUG", log_format="text")
        cache = create_image_cache(settings, client=http_client, configure_logging=True)
        root = logging.getLogger("imgcache")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, TextFormatter)
        await cache.aclose()
        root.handlers.clear()
        root.setLevel(logging.NOTSET)
