# src/conversion/converter_factory.py — v1
"""Factory: build the ConversionAdapter from settings."""

from __future__ import annotations

from markxiv.config.settings import Settings
from markxiv.conversion.base_converter import ConversionAdapter
from markxiv.conversion.pandoc_converter import PandocConverter
from markxiv.conversion.pdftotext_extractor import PdftotextExtractor


def create_conversion_adapter(settings: Settings | None = None) -> ConversionAdapter:
    """Instantiate pandoc + pdftotext with configured binaries and timeouts.

    Args:
        settings: Application settings. Defaults apply when None.

    Returns:
        ConversionAdapter wrapping both tools.
    """
    settings = settings or Settings()
    structured = PandocConverter(
        pandoc_bin=settings.pandoc_bin,
        output_format=settings.pandoc_output_format,
        timeout=settings.conversion_timeout_secs,
        retry_without_macros=settings.retry_without_macros,
    )
    raw = PdftotextExtractor(
        pdftotext_bin=settings.pdftotext_bin,
        timeout=settings.conversion_timeout_secs,
    )
    return ConversionAdapter(structured=structured, raw=raw)
