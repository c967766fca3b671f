# src/cache/disk_cache.py — v1
"""Byte-capped persistent cache of gzip-compressed blobs.

Layout: <root>/<h0h1>/<h2h3>/<safe-key>.json.gz, where h is the SHA-256 of
the canonical key. A blob's mtime doubles as its last-access time.

Writes go to a uniquely named staging file beside the target and are exposed
with os.replace(), so readers see either the old blob or the complete new one.
A background sweeper periodically deletes least-recently-accessed blobs until
the total size is at or below the cap. It never deletes a blob that a
concurrent get() has open. Size accounting between sweeps is approximate.
"""

from __future__ import annotations

import asyncio
import contextlib
import gzip
import hashlib
import logging
import os
import re
import threading
import time
import uuid
import zlib
from collections import Counter
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".json.gz"
STAGING_SUFFIX = ".tmp"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class DiskCache:
    """Persistent second cache tier with a periodic size sweeper."""

    def __init__(self, root: Path | str, cap_bytes: int, sweep_interval: float = 600.0) -> None:
        self._root = Path(root).expanduser()
        self._cap_bytes = max(0, int(cap_bytes))
        self._sweep_interval = sweep_interval
        self._size_bytes = 0
        self._readers: Counter[Path] = Counter()
        self._lock = threading.Lock()
        self._stop_event = asyncio.Event()
        self._sweeper_task: asyncio.Task | None = None

    # --- lifecycle ---

    @property
    def enabled(self) -> bool:
        return self._cap_bytes > 0

    @property
    def root(self) -> Path:
        return self._root

    @property
    def cap_bytes(self) -> int:
        return self._cap_bytes

    @property
    def size_bytes(self) -> int:
        """Approximate bytes on disk; exact right after a sweep."""
        return self._size_bytes

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper_task is not None and not self._sweeper_task.done()

    async def start(self, run_sweeper: bool = True) -> None:
        """Prepare the root directory and launch the sweeper when enabled."""
        if not self.enabled:
            logger.info("Disk cache disabled (cap is 0)")
            return
        self._size_bytes = await asyncio.to_thread(self._prepare_root)
        logger.info(
            "Disk cache ready: root=%s, size=%d bytes, cap=%d bytes",
            self._root, self._size_bytes, self._cap_bytes,
        )
        if run_sweeper and not self.sweeper_running:
            self._stop_event.clear()
            self._sweeper_task = asyncio.create_task(self._sweep_loop())

    async def close(self) -> None:
        """Stop the sweeper task."""
        if self._sweeper_task is None:
            return
        self._stop_event.set()
        await self._sweeper_task
        self._sweeper_task = None

    async def __aenter__(self) -> DiskCache:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # --- entries ---

    def path_for(self, key: str) -> Path:
        """Return the blob path for a cache key."""
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        safe = _UNSAFE_CHARS.sub("_", key).lstrip(".") or "_"
        return self._root / digest[:2] / digest[2:4] / f"{safe}{ENTRY_SUFFIX}"

    async def get(self, key: str) -> bytes | None:
        """Return the decompressed payload, or None on a miss."""
        if not self.enabled:
            return None
        return await asyncio.to_thread(self._read, self.path_for(key))

    async def put(self, key: str, payload: bytes) -> int:
        """Compress and store payload under key.

        Returns:
            Compressed size in bytes (0 when the cache is disabled).
        """
        if not self.enabled:
            return 0
        return await asyncio.to_thread(self._write, self.path_for(key), payload)

    async def delete(self, key: str) -> bool:
        if not self.enabled:
            return False
        return await asyncio.to_thread(self._delete, self.path_for(key))

    async def sweep(self) -> list[Path]:
        """Delete least-recently-accessed blobs until usage is within the cap.

        Returns:
            Paths that were removed.
        """
        if not self.enabled:
            return []
        return await asyncio.to_thread(self._sweep)

    # --- sweeper loop ---

    async def _sweep_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._sweep_interval)
            except asyncio.TimeoutError:
                pass
            else:
                break
            try:
                await self.sweep()
            except Exception:
                logger.exception("Disk cache sweep failed")

    # --- blocking helpers (run on worker threads) ---

    def _prepare_root(self) -> int:
        self._root.mkdir(parents=True, exist_ok=True)
        total = 0
        for path in self._root.rglob("*"):
            if not path.is_file():
                continue
            if path.name.endswith(STAGING_SUFFIX):
                # Left behind by a writer that died mid-write.
                with contextlib.suppress(FileNotFoundError):
                    path.unlink()
            elif path.name.endswith(ENTRY_SUFFIX):
                with contextlib.suppress(FileNotFoundError):
                    total += path.stat().st_size
        return total

    @contextlib.contextmanager
    def _reading(self, path: Path) -> Iterator[None]:
        with self._lock:
            self._readers[path] += 1
        try:
            yield
        finally:
            with self._lock:
                self._readers[path] -= 1
                if self._readers[path] <= 0:
                    del self._readers[path]

    def _read(self, path: Path) -> bytes | None:
        with self._reading(path):
            try:
                blob = path.read_bytes()
            except FileNotFoundError:
                return None
            with contextlib.suppress(FileNotFoundError):
                os.utime(path, None)
        try:
            return gzip.decompress(blob)
        except (OSError, EOFError, zlib.error) as e:
            logger.warning("Discarding corrupt disk cache entry %s: %s", path, e)
            self._delete(path)
            return None

    def _write(self, path: Path, payload: bytes) -> int:
        blob = gzip.compress(payload, mtime=0)
        path.parent.mkdir(parents=True, exist_ok=True)
        staging = path.with_name(f".{path.name}.{uuid.uuid4().hex}{STAGING_SUFFIX}")
        try:
            staging.write_bytes(blob)
            previous = path.stat().st_size if path.exists() else 0
            os.replace(staging, path)
        except OSError:
            with contextlib.suppress(FileNotFoundError):
                staging.unlink()
            raise
        with self._lock:
            self._size_bytes = max(0, self._size_bytes + len(blob) - previous)
        return len(blob)

    def _delete(self, path: Path) -> bool:
        try:
            size = path.stat().st_size
            path.unlink()
        except FileNotFoundError:
            return False
        with self._lock:
            self._size_bytes = max(0, self._size_bytes - size)
        return True

    def _scan(self) -> list[tuple[float, int, Path]]:
        entries: list[tuple[float, int, Path]] = []
        for path in self._root.rglob(f"*{ENTRY_SUFFIX}"):
            try:
                st = path.stat()
            except FileNotFoundError:
                continue
            entries.append((st.st_mtime, st.st_size, path))
        entries.sort(key=lambda e: (e[0], str(e[2])))
        return entries

    def _sweep(self) -> list[Path]:
        started = time.monotonic()
        entries = self._scan()
        total = sum(size for _, size, _ in entries)
        removed: list[Path] = []
        for _, size, path in entries:
            if total <= self._cap_bytes:
                break
            with self._lock:
                if self._readers.get(path):
                    continue
                try:
                    path.unlink()
                except FileNotFoundError:
                    pass
                total -= size
            removed.append(path)
        with self._lock:
            self._size_bytes = total
        if removed:
            logger.info(
                "Disk cache sweep removed %d entries, %d bytes remain (cap %d), %dms",
                len(removed), total, self._cap_bytes,
                int((time.monotonic() - started) * 1000),
            )
        return removed
