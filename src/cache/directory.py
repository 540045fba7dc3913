# src/cache/directory.py — v1
"""Cache root directory management."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from imgcache.cache.errors import DirectoryError

logger = logging.getLogger(__name__)


def _make_dirs(root: Path) -> None:
    root.mkdir(parents=True, exist_ok=True)


async def ensure_directory(root: Path) -> Path:
    """Create the cache root and any missing parents.

    Idempotent and safe for concurrent callers: an already existing
    directory is not an error.

    Raises:
        DirectoryError: If the directory cannot be created (permissions,
            or a non-directory already occupies the path).
    """
    if await asyncio.to_thread(root.is_dir):
        return root
    try:
        await asyncio.to_thread(_make_dirs, root)
    except OSError as e:
        raise DirectoryError(f"Cannot create cache directory {root}: {e}") from e
    logger.debug("Created cache directory %s", root)
    return root
