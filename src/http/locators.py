# src/http/locators.py — v1
"""Build remote locators for bare image filenames."""

from __future__ import annotations

import re
from urllib.parse import quote, unquote

_SEPARATORS = re.compile(r"[\\/]")


def build_resource_locator(base_url: str, raw: str | None) -> str | None:
    """Turn a stored image reference into a full resource URL.

    The reference may be a bare filename or a path/URL; only its last
    segment (without query string) is kept. The name is percent-decoded
    once and re-encoded so already-encoded input is not double-encoded.

    Returns:
        ``<base_url>/<encoded name>``, or None for empty input.

    Examples:
        >>> build_resource_locator("https://api.example/media/", "a b.png")
        'https://api.example/media/a%20b.png'
        >>> build_resource_locator("https://api.example/media", "/x/y/%20c.jpg?v=2")
        'https://api.example/media/%20c.jpg'
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None

    file_part = _SEPARATORS.split(text)[-1].split("?")[0].strip()
    if not file_part:
        return None

    decoded = unquote(file_part) if _is_valid_escape(file_part) else file_part
    return f"{base_url.rstrip('/')}/{quote(decoded, safe='')}"


def _is_valid_escape(text: str) -> bool:
    """True when every '%' starts a well-formed escape decoding to UTF-8."""
    try:
        unquote(text, errors="strict")
    except UnicodeDecodeError:
        return False
    return re.search(r"%(?![0-9A-Fa-f]{2})", text) is None
