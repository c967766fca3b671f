# src/providers/arxiv_client.py — v1
"""aiohttp client for the arXiv export API and e-print/pdf endpoints.

Implements both provider interfaces. Library errors are translated into the
pipeline's failure taxonomy here and nowhere else.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from markxiv.config.settings import Settings
from markxiv.core.errors import DocumentNotFound, SourceUnavailable, UpstreamError
from markxiv.core.models import (
    DocumentKey,
    DocumentMetadata,
    RenderedDocument,
    SourcePayload,
    StructuredArchive,
)
from markxiv.providers.atom_parser import looks_like_html, looks_like_pdf, parse_atom_metadata
from markxiv.providers.base_provider import BaseMetadataProvider, BaseSourceProvider

logger = logging.getLogger(__name__)

ATOM_ACCEPT = "application/atom+xml"
EPRINT_ACCEPT = "application/x-eprint-tar, application/x-eprint, application/gzip, */*"
PDF_ACCEPT = "application/pdf"
NO_SOURCE_STATUSES = frozenset({400, 403, 404})


class ArxivClient(BaseMetadataProvider, BaseSourceProvider):
    """arXiv metadata and source provider.

    The session is created lazily and closed by close() unless it was
    injected by the caller.
    """

    def __init__(
        self,
        api_url: str = "https://export.arxiv.org/api/query",
        base_url: str = "https://arxiv.org",
        user_agent: str = "markxiv",
        timeout: float = 15.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Settings, session: aiohttp.ClientSession | None = None) -> ArxivClient:
        return cls(
            api_url=settings.arxiv_api_url,
            base_url=settings.arxiv_base_url,
            user_agent=settings.user_agent,
            timeout=settings.request_timeout_secs,
            session=session,
        )

    async def __aenter__(self) -> ArxivClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"User-Agent": self._user_agent},
            )
            self._owns_session = True
        return self._session

    async def _get(self, url: str, *, accept: str, params: dict[str, Any] | None = None) -> tuple[int, str, bytes]:
        """GET url and return (status, content type, body)."""
        session = self._get_session()
        try:
            async with session.get(url, params=params, headers={"Accept": accept}) as response:
                body = await response.read()
                return response.status, response.headers.get("Content-Type", ""), body
        except asyncio.TimeoutError as e:
            raise UpstreamError(f"Timed out requesting {url}") from e
        except aiohttp.ClientError as e:
            raise UpstreamError(f"Request to {url} failed: {e}") from e

    # --- BaseMetadataProvider ---

    async def fetch_metadata(self, base_id: str) -> DocumentMetadata:
        status, _, body = await self._get(self._api_url, accept=ATOM_ACCEPT, params={"id_list": base_id})
        if status == 404:
            raise DocumentNotFound(f"arXiv has no record of {base_id}", document_id=base_id)
        if not 200 <= status < 300:
            raise UpstreamError(f"arXiv API HTTP {status}", document_id=base_id)

        metadata = parse_atom_metadata(body)
        if metadata is None:
            raise DocumentNotFound(f"arXiv has no record of {base_id}", document_id=base_id)
        logger.debug("Metadata for %s: %r (%d authors)", base_id, metadata.title, len(metadata.authors))
        return metadata

    # --- BaseSourceProvider ---

    async def fetch_source(self, key: DocumentKey) -> SourcePayload:
        url = f"{self._base_url}/e-print/{key.canonical}"
        status, content_type, body = await self._get(url, accept=EPRINT_ACCEPT)

        if 200 <= status < 300:
            if "application/pdf" in content_type or looks_like_pdf(body):
                logger.info("e-print for %s is a PDF, no source archive", key)
                return RenderedDocument(body)
            if "text/html" in content_type or looks_like_html(body):
                raise UpstreamError(f"e-print for {key} returned an HTML page", document_id=key.canonical)
            return StructuredArchive(body)

        if status in NO_SOURCE_STATUSES:
            logger.info("No e-print for %s (HTTP %d), using rendered PDF", key, status)
            return await self.fetch_rendered(key)

        raise UpstreamError(f"arXiv e-print HTTP {status}", document_id=key.canonical)

    async def fetch_rendered(self, key: DocumentKey) -> RenderedDocument:
        url = f"{self._base_url}/pdf/{key.canonical}"
        status, content_type, body = await self._get(url, accept=PDF_ACCEPT)

        if status == 404:
            raise SourceUnavailable(f"No source or PDF for {key}", document_id=key.canonical)
        if not 200 <= status < 300:
            raise UpstreamError(f"arXiv pdf HTTP {status}", document_id=key.canonical)
        if not ("application/pdf" in content_type or looks_like_pdf(body)):
            raise UpstreamError(f"arXiv pdf for {key} is not a PDF", document_id=key.canonical)
        return RenderedDocument(body)
