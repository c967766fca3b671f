# src/cache/memory_cache.py — v1
"""Bounded in-memory LRU cache of assembled artifacts.

Entries are evicted purely by access order, never by age. All operations
take an internal lock and never block on IO, so the cache can be shared by
every resolve in flight, whichever thread it runs on.
"""

from __future__ import annotations

import threading
from collections import OrderedDict

from markxiv.core.models import Artifact


class MemoryCache:
    """Fixed-capacity recency cache keyed by canonical document id."""

    def __init__(self, capacity: int) -> None:
        self._capacity = max(1, int(capacity))
        self._entries: OrderedDict[str, Artifact] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: str) -> Artifact | None:
        """Return the cached artifact and mark it most recently used."""
        with self._lock:
            artifact = self._entries.get(key)
            if artifact is not None:
                self._entries.move_to_end(key)
            return artifact

    def put(self, key: str, artifact: Artifact) -> str | None:
        """Insert or replace an entry.

        Returns:
            The key evicted to make room, if any.
        """
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self._entries[key] = artifact
                return None
            evicted: str | None = None
            if len(self._entries) >= self._capacity:
                evicted, _ = self._entries.popitem(last=False)
            self._entries[key] = artifact
            return evicted

    def pop(self, key: str) -> Artifact | None:
        with self._lock:
            return self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
