# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache locations, size limits, fan-out
timeouts and logging. Every field can be overridden with an environment
variable prefixed ``HWENRICH_`` (e.g. ``HWENRICH_CACHE_TTL_DAYS=7``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hwenrich.core.errors import ConfigurationError

_MB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HWENRICH_",
        extra="ignore",
    )

    # === Storage ===
    data_dir: Path = Path("~/.hwenrich")

    # === Result cache ===
    cache_ttl_days: int = 30

    # === Image cache ===
    image_cache_max_mb: int = 500
    image_max_bytes: int = 10 * _MB
    thumbnail_size: int = 128
    gallery_limit: int = 5

    # === Fan-out ===
    source_timeout_s: float = 20.0
    max_concurrent_sources: int = 0  # 0 = unbounded

    # === HTTP ===
    http_timeout_s: float = 30.0
    http_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    image_user_agent: str = "hwenrich/0.1 (Device Knowledge Cache)"

    # === Sources ===
    local_database_path: Path | None = None
    model_name_source_enabled: bool = True
    wikipedia_enabled: bool = True
    wikipedia_language: str = "en"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("cache_ttl_days", "image_cache_max_mb", "image_max_bytes")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("thumbnail_size")
    @classmethod
    def validate_thumbnail_size(cls, v: int) -> int:  # noqa: N805
        if not 16 <= v <= 1024:
            raise ValueError("thumbnail_size must be between 16 and 1024")
        return v

    @field_validator("max_concurrent_sources", "gallery_limit")
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.image_max_bytes > self.image_cache_max_bytes:
            errors.append(
                "IMAGE_MAX_BYTES must not exceed IMAGE_CACHE_MAX_MB"
            )

        if self.source_timeout_s <= 0:
            errors.append("SOURCE_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def resolved_data_dir(self) -> Path:
        """Data directory with ``~`` expanded."""
        return Path(self.data_dir).expanduser()

    @property
    def image_cache_dir(self) -> Path:
        return self.resolved_data_dir / "cache" / "images"

    @property
    def image_cache_max_bytes(self) -> int:
        return self.image_cache_max_mb * _MB


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
