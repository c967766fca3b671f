# src/conversion/base_converter.py — v1
"""Conversion interfaces and the adapter the orchestrator talks to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class BaseStructuredConverter(ABC):
    """Converts a selected LaTeX entry point into Markdown."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short tool name for logs."""

    @abstractmethod
    async def convert(self, entry_point: Path) -> str:
        """Convert the file at entry_point. Raises ConversionError."""


class BaseRawExtractor(ABC):
    """Extracts plain text from a rendered page document."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short tool name for logs."""

    @abstractmethod
    async def extract(self, document: bytes) -> str:
        """Extract text from document bytes. Raises ConversionError."""


class ConversionAdapter:
    """Both conversion capabilities behind one contract."""

    def __init__(self, structured: BaseStructuredConverter, raw: BaseRawExtractor) -> None:
        self._structured = structured
        self._raw = raw

    @property
    def structured(self) -> BaseStructuredConverter:
        return self._structured

    @property
    def raw(self) -> BaseRawExtractor:
        return self._raw

    async def convert_structured(self, entry_point: Path) -> str:
        return await self._structured.convert(entry_point)

    async def extract_raw(self, document: bytes) -> str:
        return await self._raw.extract(document)
