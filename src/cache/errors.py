# src/cache/errors.py — v1
"""Error taxonomy for the image cache.

Every error raised by the cache derives from ImageCacheError so callers
can catch the whole family at once. Underlying exceptions are chained.
"""

from __future__ import annotations


class ImageCacheError(Exception):
    """Base class for all image cache failures."""


class DirectoryError(ImageCacheError):
    """The cache root directory cannot be created."""


class NetworkError(ImageCacheError):
    """Transport failure before an HTTP response was obtained."""


class HttpStatusError(ImageCacheError):
    """The remote server answered with a status code >= 400."""

    def __init__(self, status_code: int, locator: str) -> None:
        self.status_code = status_code
        self.locator = locator
        super().__init__(f"HTTP {status_code} for {locator}")


class FileSystemError(ImageCacheError):
    """Writing the temporary file or publishing the final file failed."""


class SerializationError(ImageCacheError):
    """The persisted index blob cannot be parsed."""
