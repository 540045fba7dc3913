# src/http/auth.py — v1
"""Auth header providers attached verbatim to every download."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

if TYPE_CHECKING:
    from imgcache.config.settings import Settings


@runtime_checkable
class AuthHeaderProvider(Protocol):
    """Anything that can produce request headers for outbound downloads."""

    def headers(self) -> dict[str, str]:
        ...


class StaticHeaderProvider:
    """Provider returning a fixed header mapping."""

    def __init__(self, headers: Mapping[str, str] | None = None) -> None:
        self._headers = dict(headers or {})

    def headers(self) -> dict[str, str]:
        return dict(self._headers)


class ClientHeaderProvider:
    """Provider that mirrors the default headers of a shared httpx client.

    Only non-empty string values are kept, so the same identification
    headers the API client sends are reused for image downloads without
    duplicating configuration.
    """

    def __init__(self, client: httpx.AsyncClient | httpx.Client) -> None:
        self._client = client

    def headers(self) -> dict[str, str]:
        out: dict[str, str] = {}
        # raw keeps the header casing the client was configured with
        for raw_name, raw_value in self._client.headers.raw:
            value = raw_value.decode("latin-1")
            if value:
                out[raw_name.decode("latin-1")] = value
        return out


def settings_header_provider(settings: Settings) -> StaticHeaderProvider:
    """Build a static provider from AUTH_HEADER_NAME / AUTH_HEADER_VALUE."""
    return StaticHeaderProvider(settings.auth_headers)
