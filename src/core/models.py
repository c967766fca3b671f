# src/core/models.py — v1
"""Shared domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# === IDENTIFIERS ===


class DocumentKey(BaseModel):
    """Canonical cache key for one arXiv document.

    A key without a version denotes "latest" and never shares a cache entry
    with any explicit version of the same document.
    """

    model_config = ConfigDict(frozen=True)

    base_id: str
    version: str | None = None

    @property
    def canonical(self) -> str:
        if self.version is None:
            return self.base_id
        return f"{self.base_id}v{self.version}"

    @property
    def is_latest(self) -> bool:
        return self.version is None

    def __str__(self) -> str:
        return self.canonical


# === PROVIDER PAYLOADS ===


class DocumentMetadata(BaseModel):
    """Title, abstract and authors as reported by the metadata provider."""

    title: str = ""
    abstract: str = ""
    authors: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class StructuredArchive:
    """Source archive bytes (tar, tar.gz or a gzipped single .tex file)."""

    data: bytes


@dataclass(frozen=True)
class RenderedDocument:
    """Rendered page document (PDF) bytes."""

    data: bytes


SourcePayload = StructuredArchive | RenderedDocument


# === ARTIFACT ===


class SourceKind(str, Enum):
    """Which conversion path produced an artifact body."""

    STRUCTURED_CONVERSION = "structured_conversion"
    RAW_EXTRACTION = "raw_extraction"


class Artifact(BaseModel):
    """Fully assembled, sanitized conversion result. Never mutated."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    title: str
    abstract: str
    authors: list[str] = Field(default_factory=list)
    body: str
    source_kind: SourceKind
    size_bytes: int
    created_at: datetime

    @classmethod
    def assemble(
        cls,
        key: DocumentKey,
        metadata: DocumentMetadata,
        body: str,
        source_kind: SourceKind,
        created_at: datetime | None = None,
    ) -> Artifact:
        """Build an artifact from an already sanitized body."""
        markdown = render_markdown(metadata.title, metadata.abstract, metadata.authors, body)
        return cls(
            document_id=key.canonical,
            title=metadata.title,
            abstract=metadata.abstract,
            authors=list(metadata.authors),
            body=body,
            source_kind=source_kind,
            size_bytes=len(markdown.encode("utf-8")),
            created_at=created_at or datetime.now(timezone.utc),
        )

    def to_markdown(self) -> str:
        """Serialized form handed to consumers."""
        return render_markdown(self.title, self.abstract, self.authors, self.body)


def render_markdown(title: str, abstract: str, authors: list[str], body: str) -> str:
    """Prepend title, authors and abstract sections to a converted body."""
    parts: list[str] = []
    if title:
        parts.append(f"# {title}")
    if authors:
        parts.append("## Authors\n" + ", ".join(authors))
    if abstract:
        parts.append(f"## Abstract\n{abstract}")
    if body:
        parts.append(body)
    return "\n\n".join(parts) + "\n"
