# src/api/facade.py — v1
"""Public API facade: wire an Orchestrator from Settings.

Usage:
    from markxiv.api.facade import convert, open_orchestrator

    artifact = await convert("1601.00001")

    async with open_orchestrator() as orchestrator:
        artifact = await orchestrator.resolve_id("hep-th/9901001v2")
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from markxiv.cache.cache_factory import create_disk_cache, create_memory_cache
from markxiv.config.settings import Settings
from markxiv.conversion.converter_factory import create_conversion_adapter
from markxiv.pipeline.orchestrator import Orchestrator
from markxiv.providers.arxiv_client import ArxivClient

if TYPE_CHECKING:
    import aiohttp

    from markxiv.conversion.base_converter import ConversionAdapter
    from markxiv.core.models import Artifact

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_orchestrator(
    settings: Settings | None = None,
    session: aiohttp.ClientSession | None = None,
    adapter: ConversionAdapter | None = None,
    run_sweeper: bool = True,
) -> AsyncIterator[Orchestrator]:
    """Build an Orchestrator and release its resources on exit.

    Args:
        settings: Global settings. Loaded from .env if None.
        session: Optional shared aiohttp session for the arXiv client.
        adapter: Conversion adapter override. Built from settings if None.
        run_sweeper: Whether to start the disk-cache sweeper task.

    Yields:
        A ready Orchestrator. The arXiv session is closed and the sweeper
        stopped when the context exits.
    """
    settings = settings or Settings()
    disk_cache = create_disk_cache(settings)
    client = ArxivClient.from_settings(settings, session=session)

    if disk_cache is not None:
        await disk_cache.start(run_sweeper=run_sweeper)
    try:
        orchestrator = Orchestrator(
            metadata_provider=client,
            source_provider=client,
            adapter=adapter or create_conversion_adapter(settings),
            memory_cache=create_memory_cache(settings),
            disk_cache=disk_cache,
            request_timeout=settings.request_timeout_secs,
            conversion_timeout=settings.conversion_timeout_secs,
        )
        logger.debug(
            "Orchestrator ready: memory cap=%d, disk cache=%s",
            settings.cache_cap, "on" if disk_cache is not None else "off",
        )
        yield orchestrator
    finally:
        await client.close()
        if disk_cache is not None:
            await disk_cache.close()


async def convert(
    paper_id: str,
    refresh: bool = False,
    settings: Settings | None = None,
) -> Artifact:
    """Resolve a single arXiv id to an Artifact.

    Raises:
        InvalidDocumentId: paper_id is not a valid arXiv identifier.
        ConversionFailure: The document could not be built.
    """
    async with open_orchestrator(settings, run_sweeper=False) as orchestrator:
        return await orchestrator.resolve_id(paper_id, force_refresh=refresh)
