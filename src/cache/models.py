# src/cache/models.py — v1
"""Cache domain models: CacheEntry, WarmOutcome."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

ContentKey = str
"""Hex digest derived from a remote locator (see keys.derive_key)."""


class CacheEntry(BaseModel):
    """One successfully cached remote resource.

    Also accepts the camelCase entries (remoteUri, localUri, ts in epoch
    milliseconds) written by the mobile app's index, so an existing index
    blob can be read with KEY_ALGORITHM=sha1.
    """

    model_config = ConfigDict(frozen=True)

    remote_locator: str = Field(validation_alias=AliasChoices("remote_locator", "remoteUri"))
    local_path: str = Field(validation_alias=AliasChoices("local_path", "localUri"))
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "ts"))


Index = dict[ContentKey, CacheEntry]


class WarmOutcome(BaseModel):
    """Settled result of warming a single locator."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    locator: str
    status: Literal["fulfilled", "rejected"]
    path: str | None = None
    error: str | None = None
    exception: BaseException | None = Field(default=None, exclude=True, repr=False)

    @property
    def ok(self) -> bool:
        return self.status == "fulfilled"
