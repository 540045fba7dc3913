# src/cache/keys.py — v1
"""Stable content keys for remote locators."""

from __future__ import annotations

import hashlib

SUPPORTED_ALGORITHMS = ("sha1", "sha256")


def derive_key(locator: str, algorithm: str = "sha256") -> str:
    """Derive the cache key of a remote locator.

    The key is the lowercase hex digest of ``algorithm`` over the UTF-8
    bytes of the locator, so it is stable across calls and processes and
    safe to use as a filename stem.

    Raises:
        ValueError: If the algorithm is not supported.
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported key algorithm: {algorithm!r}")
    return hashlib.new(algorithm, locator.encode("utf-8")).hexdigest()
