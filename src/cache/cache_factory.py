# src/cache/cache_factory.py — v1
"""Factory for the two cache tiers."""

from __future__ import annotations

from markxiv.cache.disk_cache import DiskCache
from markxiv.cache.memory_cache import MemoryCache
from markxiv.config.settings import Settings


def create_memory_cache(settings: Settings | None = None) -> MemoryCache:
    """Instantiate the in-memory LRU tier."""
    capacity = 128 if settings is None else settings.cache_cap
    return MemoryCache(capacity)


def create_disk_cache(settings: Settings | None = None) -> DiskCache | None:
    """Instantiate the disk tier, or None when it is disabled.

    Args:
        settings: Application settings. None means no disk cache.

    Returns:
        A DiskCache that still needs start(), or None if the byte cap is 0.
    """
    if settings is None or not settings.disk_cache_enabled:
        return None
    return DiskCache(
        root=settings.cache_dir,
        cap_bytes=settings.disk_cache_cap_bytes,
        sweep_interval=settings.sweep_interval_secs,
    )
