# src/conversion/pandoc_converter.py — v1
"""Structured LaTeX -> Markdown conversion through pandoc.

Custom macro definitions are the most common reason pandoc rejects an
otherwise valid paper, so a failed conversion is retried once on a copy of
the entry point with the definitions removed.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

from markxiv.conversion.base_converter import BaseStructuredConverter
from markxiv.conversion.process import run_process
from markxiv.core.errors import ConversionError

logger = logging.getLogger(__name__)

# One definition per line is the overwhelmingly common arXiv layout; bodies
# that span lines are left for pandoc to cope with.
_MACRO_DEFINITION = re.compile(
    r"^[ \t]*\\(?:(?:re)?newcommand\*?|providecommand\*?|DeclareMathOperator\*?|def)\b.*$\n?",
    re.MULTILINE,
)


def strip_macro_definitions(tex: str) -> str:
    """Remove single-line macro definitions from LaTeX source."""
    return _MACRO_DEFINITION.sub("", tex)


class PandocConverter(BaseStructuredConverter):
    """Run pandoc over a LaTeX entry point."""

    def __init__(
        self,
        pandoc_bin: str = "pandoc",
        output_format: str = "gfm",
        timeout: float = 120.0,
        retry_without_macros: bool = True,
    ) -> None:
        self._pandoc_bin = pandoc_bin
        self._output_format = output_format
        self._timeout = timeout
        self._retry_without_macros = retry_without_macros

    @property
    def name(self) -> str:
        return "pandoc"

    async def convert(self, entry_point: Path) -> str:
        try:
            return await self._run(entry_point)
        except ConversionError as first_error:
            if not self._retry_without_macros:
                raise
            retry_path = await asyncio.to_thread(self._write_without_macros, entry_point)
            if retry_path is None:
                raise
            logger.info(
                "pandoc failed on %s, retrying without macro definitions", entry_point.name
            )
            try:
                return await self._run(retry_path)
            except ConversionError as retry_error:
                raise ConversionError(
                    f"{first_error}; retry without macros: {retry_error}"
                ) from retry_error

    async def _run(self, path: Path) -> str:
        result = await run_process(
            [
                self._pandoc_bin,
                f"./{path.name}",
                "--from=latex",
                f"--to={self._output_format}",
                "--wrap=none",
            ],
            cwd=path.parent,
            timeout=self._timeout,
        )
        markdown = result.text()
        if not markdown.strip():
            raise ConversionError(f"pandoc produced no output for {path.name}")
        return markdown

    @staticmethod
    def _write_without_macros(entry_point: Path) -> Path | None:
        """Write a macro-free sibling of entry_point; None if nothing to strip."""
        source = entry_point.read_text(encoding="utf-8", errors="replace")
        stripped = strip_macro_definitions(source)
        if stripped == source:
            return None
        retry_path = entry_point.with_name(f"{entry_point.stem}.nomacros{entry_point.suffix}")
        retry_path.write_text(stripped, encoding="utf-8")
        return retry_path
