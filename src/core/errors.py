# src/core/errors.py — v1
"""Failure taxonomy for the conversion pipeline.

Every way a resolve can fail is a ConversionFailure subclass tagged with a
FailureKind. Serving layers map the kind to a response; the pipeline only
guarantees the kind is correct. Failures are never cached.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, Sequence


class FailureKind(str, Enum):
    """Tag carried by every ConversionFailure."""

    NOT_FOUND = "not_found"
    SOURCE_UNAVAILABLE = "source_unavailable"
    UPSTREAM_ERROR = "upstream_error"
    EXTRACTION_ERROR = "extraction_error"
    CONVERSION_ERROR = "conversion_error"
    ALL_FALLBACKS_EXHAUSTED = "all_fallbacks_exhausted"


class InvalidDocumentId(ValueError):
    """Raised when a raw identifier does not match the arXiv grammar."""

    def __init__(self, raw: str, reason: str = "malformed identifier") -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid arXiv id {raw!r}: {reason}")


class ConversionFailure(Exception):
    """Base class for every typed pipeline failure."""

    kind: ClassVar[FailureKind]
    retryable: ClassVar[bool] = False

    def __init__(self, message: str = "", *, document_id: str | None = None) -> None:
        self.message = message or self.kind.value.replace("_", " ")
        self.document_id = document_id
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, document_id={self.document_id!r})"


class DocumentNotFound(ConversionFailure):
    """The identifier does not exist upstream."""

    kind = FailureKind.NOT_FOUND


class SourceUnavailable(ConversionFailure):
    """Neither a source archive nor a rendered PDF exists."""

    kind = FailureKind.SOURCE_UNAVAILABLE


class UpstreamError(ConversionFailure):
    """Network or provider failure. Safe to retry later."""

    kind = FailureKind.UPSTREAM_ERROR
    retryable = True


class ExtractionError(ConversionFailure):
    """The source archive is malformed or unreadable."""

    kind = FailureKind.EXTRACTION_ERROR


class ConversionError(ConversionFailure):
    """A single conversion stage failed (timeout, non-zero exit, empty output)."""

    kind = FailureKind.CONVERSION_ERROR


class AllFallbacksExhausted(ConversionFailure):
    """Both the structured path and the raw-extraction fallback failed."""

    kind = FailureKind.ALL_FALLBACKS_EXHAUSTED

    def __init__(
        self,
        message: str = "",
        *,
        causes: Sequence[ConversionFailure] = (),
        document_id: str | None = None,
    ) -> None:
        self.causes = list(causes)
        if not message and self.causes:
            message = "; ".join(str(c) for c in self.causes)
        super().__init__(message, document_id=document_id)
