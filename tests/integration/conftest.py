# tests/integration/conftest.py — v1
"""Shared fixtures for integration tests.

Tests that shell out to pandoc or pdftotext are skipped when the binary is
not on PATH.
"""

from __future__ import annotations

import shutil

import pytest

requires_pandoc = pytest.mark.skipif(shutil.which("pandoc") is None, reason="pandoc not installed")
requires_pdftotext = pytest.mark.skipif(shutil.which("pdftotext") is None, reason="pdftotext not installed")

# Smallest PDF pdftotext accepts that still carries a text layer.
MINIMAL_PDF = b"""%PDF-1.4
1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj
2 0 obj << /Type /Pages /Kids [3 0 R] /Count 1 >> endobj
3 0 obj << /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >> endobj
4 0 obj << /Length 44 >> stream
BT /F1 24 Tf 72 700 Td (Hello markxiv) Tj ET
endstream endobj
5 0 obj << /Type /Font /Subtype /Type1 /BaseFont /Helvetica >> endobj
trailer << /Root 1 0 R >>
%%EOF
"""


@pytest.fixture
def minimal_pdf() -> bytes:
    return MINIMAL_PDF
