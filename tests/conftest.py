# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides in-memory fake providers and converters that count their calls,
archive builders, and sample metadata. No network, no external tools.
"""

from __future__ import annotations

import asyncio
import gzip
import io
import tarfile
from pathlib import Path
from typing import Callable

import pytest

from markxiv.cache.memory_cache import MemoryCache
from markxiv.conversion.base_converter import BaseRawExtractor, BaseStructuredConverter, ConversionAdapter
from markxiv.core.errors import ConversionError, DocumentNotFound, SourceUnavailable
from markxiv.core.models import (
    DocumentKey,
    DocumentMetadata,
    RenderedDocument,
    SourcePayload,
    StructuredArchive,
)
from markxiv.pipeline.orchestrator import Orchestrator
from markxiv.providers.base_provider import BaseMetadataProvider, BaseSourceProvider

SAMPLE_TEX = (
    "\\documentclass{article}\n"
    "\\begin{document}\n"
    "\\section{Introduction}\n"
    "Hello world.\n"
    "\\end{document}\n"
)
SAMPLE_PDF = b"%PDF-1.4\n% fake pdf for tests\n%%EOF\n"


# === Archive builders ===


def make_tar(files: dict[str, str | bytes], compress: bool = True) -> bytes:
    """Build a tar (gzipped by default) from a name -> content mapping."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz" if compress else "w") as tar:
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_gzipped_tex(text: str = SAMPLE_TEX) -> bytes:
    return gzip.compress(text.encode("utf-8"))


@pytest.fixture
def tar_builder() -> Callable[..., bytes]:
    return make_tar


# === Fake collaborators ===


class FakeMetadataProvider(BaseMetadataProvider):
    """Metadata from a dict; unknown ids raise DocumentNotFound."""

    def __init__(self, records: dict[str, DocumentMetadata] | None = None, delay: float = 0.0) -> None:
        self.records = records if records is not None else {}
        self.delay = delay
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def fetch_metadata(self, base_id: str) -> DocumentMetadata:
        self.calls.append(base_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if base_id not in self.records:
            raise DocumentNotFound(f"unknown id {base_id}", document_id=base_id)
        return self.records[base_id]


class FakeSourceProvider(BaseSourceProvider):
    """Sources and rendered PDFs keyed by canonical id."""

    def __init__(
        self,
        sources: dict[str, SourcePayload] | None = None,
        rendered: dict[str, bytes] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.sources = sources if sources is not None else {}
        self.rendered = rendered if rendered is not None else {}
        self.delay = delay
        self.source_calls: list[str] = []
        self.rendered_calls: list[str] = []

    async def fetch_source(self, key: DocumentKey) -> SourcePayload:
        self.source_calls.append(key.canonical)
        if self.delay:
            await asyncio.sleep(self.delay)
        payload = self.sources.get(key.canonical)
        if payload is not None:
            return payload
        return await self.fetch_rendered(key)

    async def fetch_rendered(self, key: DocumentKey) -> RenderedDocument:
        self.rendered_calls.append(key.canonical)
        data = self.rendered.get(key.canonical)
        if data is None:
            raise SourceUnavailable(f"nothing for {key}", document_id=key.canonical)
        return RenderedDocument(data)


class FakeStructuredConverter(BaseStructuredConverter):
    """Returns the entry point's text wrapped in markup, or fails on demand."""

    def __init__(self, fail: bool = False, output: str | None = None) -> None:
        self.fail = fail
        self.output = output
        self.calls: list[Path] = []

    @property
    def name(self) -> str:
        return "fake-structured"

    async def convert(self, entry_point: Path) -> str:
        self.calls.append(entry_point)
        if self.fail:
            raise ConversionError("fake structured conversion failed")
        if self.output is not None:
            return self.output
        return f"<div>converted {entry_point.name}</div>\n\n\n\nBody text."


class FakeRawExtractor(BaseRawExtractor):
    def __init__(self, fail: bool = False, output: str = "Raw text\r\n\r\n\r\nfrom pdf") -> None:
        self.fail = fail
        self.output = output
        self.calls: list[bytes] = []

    @property
    def name(self) -> str:
        return "fake-raw"

    async def extract(self, document: bytes) -> str:
        self.calls.append(document)
        if self.fail:
            raise ConversionError("fake raw extraction failed")
        return self.output


# === Fixtures ===


@pytest.fixture
def sample_metadata() -> DocumentMetadata:
    return DocumentMetadata(
        title="Attention Is Mostly What You Need",
        abstract="We study attention.",
        authors=["Alice Example", "Bob Example"],
    )


@pytest.fixture
def metadata_provider(sample_metadata) -> FakeMetadataProvider:
    return FakeMetadataProvider(
        {"1601.00001": sample_metadata, "hep-th/9901001": sample_metadata}
    )


@pytest.fixture
def source_provider() -> FakeSourceProvider:
    return FakeSourceProvider(
        sources={"1601.00001": StructuredArchive(make_tar({"main.tex": SAMPLE_TEX}))},
        rendered={"1601.00001": SAMPLE_PDF, "hep-th/9901001": SAMPLE_PDF},
    )


@pytest.fixture
def structured_converter() -> FakeStructuredConverter:
    return FakeStructuredConverter()


@pytest.fixture
def raw_extractor() -> FakeRawExtractor:
    return FakeRawExtractor()


@pytest.fixture
def adapter(structured_converter, raw_extractor) -> ConversionAdapter:
    return ConversionAdapter(structured=structured_converter, raw=raw_extractor)


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache(8)


@pytest.fixture
def orchestrator(metadata_provider, source_provider, adapter, memory_cache) -> Orchestrator:
    return Orchestrator(
        metadata_provider=metadata_provider,
        source_provider=source_provider,
        adapter=adapter,
        memory_cache=memory_cache,
        request_timeout=5.0,
        conversion_timeout=5.0,
    )
