# src/http/downloader.py — v1
"""Streaming image downloader with atomic publication.

A download is written to ``<root>/<key>.tmp`` and, once the whole body
has arrived, renamed to ``<root>/<key>.<ext>`` in a single os.replace.
Readers therefore never observe a partially written file under the
final name.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import httpx
from pydantic import BaseModel

from imgcache.cache.errors import FileSystemError, HttpStatusError, NetworkError
from imgcache.http.auth import AuthHeaderProvider, StaticHeaderProvider

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"

# Checked in order; the first substring found in the content type wins.
_CONTENT_TYPE_EXTENSIONS: tuple[tuple[str, str], ...] = (
    ("image/png", "png"),
    ("image/webp", "webp"),
    ("image/gif", "gif"),
    ("image/jpeg", "jpg"),
    ("image/jpg", "jpg"),
)


class DownloadResult(BaseModel):
    """Outcome of a successful download."""

    path: str
    status_code: int
    content_type: str | None = None
    extension: str
    size_bytes: int


def extension_for_content_type(content_type: str | None) -> str:
    """Map a declared content type to a file extension.

    Matching is case-insensitive and ignores parameters such as
    ``; charset=...``. Unknown or missing types fall back to ``jpg``.
    """
    value = (content_type or "").lower()
    for needle, ext in _CONTENT_TYPE_EXTENSIONS:
        if needle in value:
            return ext
    return DEFAULT_EXTENSION


class Downloader:
    """Fetch remote resources into the cache directory."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        header_provider: AuthHeaderProvider | None = None,
        chunk_size: int = 64 * 1024,
    ) -> None:
        self._client = client
        self._header_provider = header_provider or StaticHeaderProvider()
        self._chunk_size = chunk_size

    async def download(self, locator: str, root: Path, key: str) -> DownloadResult:
        """Download locator and publish it as ``<root>/<key>.<ext>``.

        Redirects are followed even when the shared client does not follow
        them by default.

        Raises:
            NetworkError: Transport failure before a response was obtained.
            HttpStatusError: Response status >= 400. The temp file is removed.
            FileSystemError: Writing the temp file or the final rename failed.
        """
        tmp_path = root / f"{key}.tmp"
        headers = self._header_provider.headers()

        try:
            async with self._client.stream(
                "GET", locator, headers=headers, follow_redirects=True
            ) as response:
                if response.status_code >= 400:
                    logger.warning(
                        "Cache download HTTP error: status=%s locator=%s",
                        response.status_code, locator,
                    )
                    await asyncio.to_thread(tmp_path.unlink, True)
                    raise HttpStatusError(response.status_code, locator)

                content_type = response.headers.get("content-type")
                size = await self._write_body(response, tmp_path)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            await asyncio.to_thread(tmp_path.unlink, True)
            raise NetworkError(f"Transport error fetching {locator}: {e}") from e

        ext = extension_for_content_type(content_type)
        final_path = root / f"{key}.{ext}"
        try:
            await asyncio.to_thread(os.replace, tmp_path, final_path)
        except OSError as e:
            raise FileSystemError(
                f"Cannot publish {tmp_path.name} as {final_path.name}: {e}"
            ) from e

        logger.info(
            "Downloaded %s -> %s (%d bytes)", locator, final_path.name, size,
            extra={"data": {"status": response.status_code, "content_type": content_type}},
        )
        return DownloadResult(
            path=str(final_path),
            status_code=response.status_code,
            content_type=content_type,
            extension=ext,
            size_bytes=size,
        )

    async def _write_body(self, response: httpx.Response, tmp_path: Path) -> int:
        """Stream the response body into tmp_path, returning bytes written."""
        written = 0
        try:
            fh = await asyncio.to_thread(open, tmp_path, "wb")
        except OSError as e:
            raise FileSystemError(f"Cannot open temp file {tmp_path}: {e}") from e
        try:
            async for chunk in response.aiter_bytes(self._chunk_size):
                await asyncio.to_thread(fh.write, chunk)
                written += len(chunk)
        except OSError as e:
            raise FileSystemError(f"Cannot write temp file {tmp_path}: {e}") from e
        finally:
            await asyncio.to_thread(fh.close)
        return written
