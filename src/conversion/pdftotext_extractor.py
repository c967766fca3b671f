# src/conversion/pdftotext_extractor.py — v1
"""Raw text extraction from PDFs through poppler's pdftotext."""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path

from markxiv.conversion.base_converter import BaseRawExtractor
from markxiv.conversion.process import run_process
from markxiv.core.errors import ConversionError

_PDF_NAME = "document.pdf"


class PdftotextExtractor(BaseRawExtractor):
    """Run pdftotext over PDF bytes, reading the text from stdout."""

    def __init__(self, pdftotext_bin: str = "pdftotext", timeout: float = 120.0) -> None:
        self._pdftotext_bin = pdftotext_bin
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "pdftotext"

    async def extract(self, document: bytes) -> str:
        if not document:
            raise ConversionError("empty PDF payload")

        # pdftotext needs a seekable input file, so the bytes get their own arena.
        tmp = Path(tempfile.mkdtemp(prefix="markxiv-pdf-"))
        try:
            await asyncio.to_thread((tmp / _PDF_NAME).write_bytes, document)
            result = await run_process(
                [self._pdftotext_bin, "-enc", "UTF-8", _PDF_NAME, "-"],
                cwd=tmp,
                timeout=self._timeout,
            )
        finally:
            await asyncio.to_thread(shutil.rmtree, tmp, ignore_errors=True)

        text = result.text()
        if not text.strip():
            raise ConversionError("pdftotext produced no text (image-only PDF?)")
        return text
