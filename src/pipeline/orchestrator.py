# src/pipeline/orchestrator.py — v1
"""Pipeline orchestrator: resolve a document key to a cached Artifact.

Lookup order is memory cache, then disk cache. On a miss (or a forced
refresh) one pipeline run per key does the work:

  1. fetch metadata
  2. fetch source (archive or rendered PDF)
  3. archive: unpack, select entry point, structured conversion
     rendered PDF, or structured failure: raw extraction
  4. sanitize, assemble, write both cache tiers

Failures are raised as ConversionFailure subclasses and never cached.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import Awaitable, TypeVar

from pydantic import ValidationError

from markxiv.cache.disk_cache import DiskCache
from markxiv.cache.memory_cache import MemoryCache
from markxiv.conversion.base_converter import ConversionAdapter
from markxiv.conversion.sanitizer import sanitize
from markxiv.core.errors import (
    AllFallbacksExhausted,
    ConversionError,
    ConversionFailure,
    ExtractionError,
    SourceUnavailable,
    UpstreamError,
)
from markxiv.core.identifier import parse_document_key
from markxiv.core.models import (
    Artifact,
    DocumentKey,
    RenderedDocument,
    SourceKind,
    StructuredArchive,
)
from markxiv.extraction.archive_extractor import unpack_archive
from markxiv.extraction.entry_point import select_entry_point
from markxiv.logging.context import set_document_context, set_stage
from markxiv.pipeline.single_flight import SingleFlight
from markxiv.providers.base_provider import BaseMetadataProvider, BaseSourceProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

ARENA_PREFIX = "markxiv-"


class _DiskLookup:
    """A disk-tier read in progress; flagged when a store overtakes it."""

    __slots__ = ("superseded",)

    def __init__(self) -> None:
        self.superseded = False


class Orchestrator:
    """Composes providers, converters and caches into resolve().

    Args:
        metadata_provider: Source of title, abstract and authors.
        source_provider: Source of archives and rendered documents.
        adapter: Structured converter plus raw extractor.
        memory_cache: First cache tier.
        disk_cache: Optional second cache tier (None when disabled).
        request_timeout: Upper bound in seconds for each provider call.
        conversion_timeout: Upper bound in seconds for unpacking an archive.
    """

    def __init__(
        self,
        metadata_provider: BaseMetadataProvider,
        source_provider: BaseSourceProvider,
        adapter: ConversionAdapter,
        memory_cache: MemoryCache,
        disk_cache: DiskCache | None = None,
        *,
        request_timeout: float = 15.0,
        conversion_timeout: float = 120.0,
    ) -> None:
        self._metadata = metadata_provider
        self._sources = source_provider
        self._adapter = adapter
        self._memory = memory_cache
        self._disk = disk_cache
        self._request_timeout = request_timeout
        self._conversion_timeout = conversion_timeout
        self._flights: SingleFlight[Artifact] = SingleFlight()
        self._disk_lookups: dict[str, set[_DiskLookup]] = {}
        self._cleanups: set[asyncio.Future[None]] = set()

    @property
    def memory_cache(self) -> MemoryCache:
        return self._memory

    @property
    def disk_cache(self) -> DiskCache | None:
        return self._disk

    @property
    def flights(self) -> SingleFlight[Artifact]:
        return self._flights

    # --- public API ---

    async def resolve_id(self, raw: str, force_refresh: bool = False) -> Artifact:
        """Parse a raw identifier and resolve it. Raises InvalidDocumentId."""
        return await self.resolve(parse_document_key(raw), force_refresh=force_refresh)

    async def resolve(self, key: DocumentKey, force_refresh: bool = False) -> Artifact:
        """Return the Artifact for key, converting it on a cache miss.

        Raises:
            ConversionFailure: The typed reason the document could not be built.
        """
        if not force_refresh:
            cached = await self.cached(key)
            if cached is not None:
                return cached
            # A flight may have finished while the disk tier was being probed.
            cached = self._memory.get(key.canonical)
            if cached is not None:
                return cached

        return await self._flights.do(key.canonical, lambda: self._run_pipeline(key))

    async def cached(self, key: DocumentKey) -> Artifact | None:
        """Look key up in both tiers without touching any provider."""
        artifact = self._memory.get(key.canonical)
        if artifact is not None:
            logger.debug("Memory cache hit: %s", key)
            return artifact

        if self._disk is None:
            return None
        lookup = _DiskLookup()
        pending = self._disk_lookups.setdefault(key.canonical, set())
        pending.add(lookup)
        try:
            artifact = await self._load_from_disk(key)
        finally:
            pending.discard(lookup)
            if not pending and self._disk_lookups.get(key.canonical) is pending:
                del self._disk_lookups[key.canonical]
        if artifact is None:
            return None

        if lookup.superseded:
            # A pipeline run stored a newer artifact while the blob was read.
            logger.debug("Disk cache hit for %s superseded by a newer store", key)
            newer = self._memory.get(key.canonical)
            return newer if newer is not None else artifact

        logger.debug("Disk cache hit: %s", key)
        self._memory.put(key.canonical, artifact)
        return artifact

    # --- pipeline ---

    async def _run_pipeline(self, key: DocumentKey) -> Artifact:
        run_id = uuid.uuid4().hex[:12]
        set_document_context(key.canonical, run_id)
        start = time.monotonic()
        logger.info("Pipeline started for %s", key)
        try:
            artifact = await self._build(key)
        except ConversionFailure as e:
            if e.document_id is None:
                e.document_id = key.canonical
            logger.warning(
                "Pipeline failed for %s after %dms: %s (%s)",
                key, _elapsed_ms(start), e.kind.value, e,
            )
            raise

        set_stage("store")
        await self._store(key, artifact)
        set_stage(None)
        logger.info(
            "Pipeline finished for %s in %dms (%s, %d bytes)",
            key, _elapsed_ms(start), artifact.source_kind.value, artifact.size_bytes,
        )
        return artifact

    async def _build(self, key: DocumentKey) -> Artifact:
        set_stage("metadata")
        metadata = await self._bounded(self._metadata.fetch_metadata(key.base_id), "metadata", key)

        set_stage("source")
        payload = await self._bounded(self._sources.fetch_source(key), "source", key)

        if isinstance(payload, StructuredArchive):
            try:
                body = await self._convert_archive(key, payload)
                kind = SourceKind.STRUCTURED_CONVERSION
            except ConversionError as structured_error:
                logger.warning("Structured conversion failed for %s, falling back: %s", key, structured_error)
                body = await self._fallback(key, structured_error)
                kind = SourceKind.RAW_EXTRACTION
        elif isinstance(payload, RenderedDocument):
            body = await self._extract_raw(key, payload, causes=[])
            kind = SourceKind.RAW_EXTRACTION
        else:
            raise UpstreamError(f"Unexpected source payload {type(payload).__name__}", document_id=key.canonical)

        set_stage("sanitize")
        return Artifact.assemble(key, metadata, sanitize(body), kind)

    async def _convert_archive(self, key: DocumentKey, archive: StructuredArchive) -> str:
        set_stage("extract")
        arena = Path(tempfile.mkdtemp(prefix=ARENA_PREFIX))
        stop = threading.Event()
        worker: asyncio.Future[list[Path]] | None = None
        try:
            worker = asyncio.ensure_future(asyncio.to_thread(unpack_archive, archive.data, arena, stop))
            try:
                files = await asyncio.wait_for(asyncio.shield(worker), timeout=self._conversion_timeout)
            except asyncio.TimeoutError as e:
                raise ExtractionError(
                    f"Unpacking timed out after {self._conversion_timeout:g}s",
                    document_id=key.canonical,
                ) from e
            logger.debug("Unpacked %d files for %s", len(files), key)

            entry = await asyncio.to_thread(select_entry_point, arena)
            if entry is None:
                raise ConversionError("No LaTeX entry point in source archive", document_id=key.canonical)
            logger.info(
                "Entry point for %s: %s (%s)",
                key, entry.path.relative_to(arena), entry.reason.value,
            )

            set_stage("convert")
            return await self._adapter.convert_structured(entry.path)
        finally:
            stop.set()
            await self._release_arena(arena, worker)

    async def _release_arena(self, arena: Path, worker: asyncio.Future[list[Path]] | None) -> None:
        # The cleanup task outlives a second cancellation of this one, so the
        # arena is only removed after the unpacking thread has stopped writing.
        cleanup = asyncio.ensure_future(_remove_arena(arena, worker))
        self._cleanups.add(cleanup)
        cleanup.add_done_callback(self._cleanups.discard)
        await asyncio.shield(cleanup)

    async def _fallback(self, key: DocumentKey, structured_error: ConversionError) -> str:
        set_stage("fallback")
        try:
            rendered = await self._bounded(self._sources.fetch_rendered(key), "rendered document", key)
        except SourceUnavailable as e:
            raise AllFallbacksExhausted(
                causes=[structured_error, e], document_id=key.canonical,
            ) from e
        return await self._extract_raw(key, rendered, causes=[structured_error])

    async def _extract_raw(
        self, key: DocumentKey, document: RenderedDocument, causes: list[ConversionFailure],
    ) -> str:
        set_stage("raw_extract")
        try:
            return await self._adapter.extract_raw(document.data)
        except ConversionError as e:
            raise AllFallbacksExhausted(causes=[*causes, e], document_id=key.canonical) from e

    async def _bounded(self, aw: Awaitable[T], what: str, key: DocumentKey) -> T:
        try:
            return await asyncio.wait_for(aw, timeout=self._request_timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamError(
                f"Fetching {what} timed out after {self._request_timeout:g}s",
                document_id=key.canonical,
            ) from e

    # --- cache tiers ---

    async def _load_from_disk(self, key: DocumentKey) -> Artifact | None:
        if self._disk is None:
            return None
        try:
            payload = await self._disk.get(key.canonical)
        except OSError as e:
            logger.warning("Disk cache read failed for %s: %s", key, e)
            return None
        if payload is None:
            return None
        try:
            return Artifact.model_validate_json(payload)
        except ValidationError as e:
            logger.warning("Dropping undecodable disk cache entry for %s: %s", key, e)
            try:
                await self._disk.delete(key.canonical)
            except OSError:
                logger.exception("Failed to delete disk cache entry for %s", key)
            return None

    async def _store(self, key: DocumentKey, artifact: Artifact) -> None:
        for lookup in self._disk_lookups.get(key.canonical, ()):
            lookup.superseded = True
        evicted = self._memory.put(key.canonical, artifact)
        if evicted is not None:
            logger.debug("Memory cache evicted %s", evicted)
        if self._disk is None:
            return
        try:
            written = await self._disk.put(key.canonical, artifact.model_dump_json().encode("utf-8"))
        except OSError:
            logger.exception("Disk cache write failed for %s", key)
            return
        logger.debug("Disk cache stored %s (%d bytes compressed)", key, written)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


async def _remove_arena(arena: Path, worker: asyncio.Future[list[Path]] | None) -> None:
    if worker is not None:
        await asyncio.wait({worker})
        if not worker.cancelled():
            worker.exception()
    await asyncio.to_thread(shutil.rmtree, arena, ignore_errors=True)
    logger.debug("Removed arena %s", arena)
