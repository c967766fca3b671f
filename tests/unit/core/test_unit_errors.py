# tests/unit/core/test_unit_errors.py — v1
"""Tests for core/errors.py — failure taxonomy."""

from __future__ import annotations

import pytest

from markxiv.core.errors import (
    AllFallbacksExhausted,
    ConversionError,
    ConversionFailure,
    DocumentNotFound,
    ExtractionError,
    FailureKind,
    SourceUnavailable,
    UpstreamError,
)


class TestFailureKinds:
    @pytest.mark.parametrize(
        "cls, kind",
        [
            (DocumentNotFound, FailureKind.NOT_FOUND),
            (SourceUnavailable, FailureKind.SOURCE_UNAVAILABLE),
            (UpstreamError, FailureKind.UPSTREAM_ERROR),
            (ExtractionError, FailureKind.EXTRACTION_ERROR),
            (ConversionError, FailureKind.CONVERSION_ERROR),
            (AllFallbacksExhausted, FailureKind.ALL_FALLBACKS_EXHAUSTED),
        ],
    )
    def test_kind(self, cls, kind):
        err = cls()
        assert isinstance(err, ConversionFailure)
        assert err.kind is kind

    def test_only_upstream_is_retryable(self):
        assert UpstreamError.retryable
        assert not DocumentNotFound.retryable
        assert not AllFallbacksExhausted.retryable

    def test_default_message(self):
        assert str(SourceUnavailable()) == "source unavailable"

    def test_document_id(self):
        err = DocumentNotFound("gone", document_id="1601.00001")
        assert err.document_id == "1601.00001"
        assert "1601.00001" in repr(err)


class TestAllFallbacksExhausted:
    def test_causes_joined_into_message(self):
        err = AllFallbacksExhausted(causes=[ConversionError("pandoc failed"), ConversionError("pdftotext failed")])
        assert len(err.causes) == 2
        assert str(err) == "pandoc failed; pdftotext failed"

    def test_explicit_message_wins(self):
        err = AllFallbacksExhausted("both failed", causes=[ConversionError("x")])
        assert str(err) == "both failed"
