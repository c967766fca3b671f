# src/config/settings.py — v1
"""Typed configuration loaded from the environment and .env via pydantic-settings.

Single source of truth for all deployment-specific settings. Every field is
read from a MARKXIV_-prefixed variable (cache_cap <- MARKXIV_CACHE_CAP).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_prefix="MARKXIV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Memory cache ===
    cache_cap: int = 128

    # === Disk cache ===
    cache_dir: Path = Path("cache")
    disk_cache_cap_bytes: int = 0
    sweep_interval_secs: float = 600.0

    # === Timeouts ===
    request_timeout_secs: float = 15.0
    conversion_timeout_secs: float = 120.0

    # === External tools ===
    pandoc_bin: str = "pandoc"
    pandoc_output_format: str = "gfm"
    retry_without_macros: bool = True
    pdftotext_bin: str = "pdftotext"

    # === Upstream ===
    arxiv_api_url: str = "https://export.arxiv.org/api/query"
    arxiv_base_url: str = "https://arxiv.org"
    user_agent: str = "markxiv/0.3 (+https://github.com/)"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("arxiv_api_url", "arxiv_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate value ranges and cross-field rules."""
        errors: list[str] = []

        if self.cache_cap < 1:
            errors.append("CACHE_CAP must be >= 1")
        if self.disk_cache_cap_bytes < 0:
            errors.append("DISK_CACHE_CAP_BYTES must be >= 0 (0 disables the disk cache)")
        if self.disk_cache_cap_bytes > 0 and self.sweep_interval_secs <= 0:
            errors.append("SWEEP_INTERVAL_SECS must be > 0 when the disk cache is enabled")
        if self.request_timeout_secs <= 0:
            errors.append("REQUEST_TIMEOUT_SECS must be > 0")
        if self.conversion_timeout_secs <= 0:
            errors.append("CONVERSION_TIMEOUT_SECS must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def disk_cache_enabled(self) -> bool:
        return self.disk_cache_cap_bytes > 0


def load_settings(**overrides: object) -> Settings:
    """Load settings from the environment with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-process config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
