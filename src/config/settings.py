# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache location, index storage backend,
download behaviour and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache location ===
    cache_root: Path = Path("~/.cache/imgcache")
    cache_dir_name: str = "product-images"

    # === Index ===
    index_key: str = "PRODUCT_IMG_CACHE_INDEX_V1"
    key_algorithm: Literal["sha1", "sha256"] = "sha256"

    # === Key-value storage for the index ===
    kv_backend: Literal["json", "sqlite", "redis", "memory"] = "json"
    kv_root: Path = Path("~/.cache/imgcache/kv")
    kv_redis_url: str = ""

    # === Remote resources ===
    remote_base_url: str = ""
    auth_header_name: str = ""
    auth_header_value: str = ""

    # === Downloads ===
    download_timeout_s: float = 30.0
    download_chunk_size: int = 64 * 1024
    warm_leading_count: int = 3

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("download_timeout_s", "download_chunk_size")
    @classmethod
    def validate_positive(cls, v: float, info) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("warm_leading_count")
    @classmethod
    def validate_warm_count(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("warm_leading_count must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.auth_header_value and not self.auth_header_name:
            errors.append("AUTH_HEADER_VALUE requires AUTH_HEADER_NAME")

        if not self.cache_dir_name.strip():
            errors.append("CACHE_DIR_NAME must not be empty")

        if not self.index_key.strip():
            errors.append("INDEX_KEY must not be empty")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_dir(self) -> Path:
        """Directory holding the cached image files."""
        return self.cache_root.expanduser() / self.cache_dir_name

    @property
    def auth_headers(self) -> dict[str, str]:
        """Headers attached to every download (empty when not configured)."""
        if not self.auth_header_name or not self.auth_header_value:
            return {}
        return {self.auth_header_name: self.auth_header_value}


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding apps).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
