# src/providers/base_provider.py — v1
"""Abstract provider interfaces for document metadata and source payloads."""

from __future__ import annotations

from abc import ABC, abstractmethod

from markxiv.core.models import DocumentKey, DocumentMetadata, RenderedDocument, SourcePayload


class BaseMetadataProvider(ABC):
    """Looks up title, abstract and authors for a document."""

    @abstractmethod
    async def fetch_metadata(self, base_id: str) -> DocumentMetadata:
        """Fetch metadata for the latest version of base_id.

        Raises:
            DocumentNotFound: The identifier does not exist.
            UpstreamError: Network or provider failure.
        """


class BaseSourceProvider(ABC):
    """Downloads source archives and rendered documents."""

    @abstractmethod
    async def fetch_source(self, key: DocumentKey) -> SourcePayload:
        """Fetch the best available source for key.

        Returns a StructuredArchive when a source archive exists, otherwise
        the RenderedDocument.

        Raises:
            SourceUnavailable: Neither an archive nor a rendered document exists.
            DocumentNotFound: The identifier does not exist.
            UpstreamError: Network or provider failure.
        """

    @abstractmethod
    async def fetch_rendered(self, key: DocumentKey) -> RenderedDocument:
        """Fetch the rendered document only. Same failures as fetch_source."""
