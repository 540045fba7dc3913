"""Content-addressable local cache for remote images."""

from imgcache.cache.cache_factory import create_image_cache
from imgcache.cache.errors import (
    DirectoryError,
    FileSystemError,
    HttpStatusError,
    ImageCacheError,
    NetworkError,
    SerializationError,
)
from imgcache.cache.keys import derive_key
from imgcache.cache.models import CacheEntry, WarmOutcome
from imgcache.cache.service import ImageCache

__all__ = [
    "CacheEntry",
    "DirectoryError",
    "FileSystemError",
    "HttpStatusError",
    "ImageCache",
    "ImageCacheError",
    "NetworkError",
    "SerializationError",
    "WarmOutcome",
    "create_image_cache",
    "derive_key",
]
