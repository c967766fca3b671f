# src/extraction/entry_point.py — v1
"""Pick the primary compilable LaTeX file of an unpacked submission.

Priority, first match wins:
  1. a conventionally named main file (main.tex, ms.tex, paper.tex, ...)
  2. the only candidate
  3. a file that declares \\documentclass (non-supplementary names first)
  4. the largest candidate
Candidates are visited in relative-path order and every tie is broken by
path, so the same file set always yields the same choice.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence

TEX_SUFFIXES = (".tex", ".ltx", ".latex")
MAIN_STEMS = frozenset({"main", "ms", "paper", "manuscript", "article"})
_SUPPLEMENTARY_TOKENS = frozenset({"appendix", "appendices", "si"})
_IGNORED_DIRS = frozenset({"__MACOSX"})

# \documentclass outside a comment.
_DOCUMENT_ROOT = re.compile(r"^[^%\n]*\\documentclass\b", re.MULTILINE)
_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


class SelectionReason(str, Enum):
    NAMED = "named"
    SOLE = "sole"
    DOCUMENT_ROOT = "document_root"
    LARGEST = "largest"


@dataclass(frozen=True)
class SourceFile:
    """A candidate file with what the heuristic needs to know about it."""

    path: Path
    relative: str
    size: int
    is_document_root: bool

    @property
    def depth(self) -> int:
        return self.relative.count("/")

    @property
    def is_supplementary(self) -> bool:
        tokens = [t for t in _TOKEN_SPLIT.split(self.path.stem.lower()) if t]
        return any(t.startswith("supp") or t in _SUPPLEMENTARY_TOKENS for t in tokens)


@dataclass(frozen=True)
class EntryPoint:
    path: Path
    reason: SelectionReason


def collect_sources(root: Path) -> list[SourceFile]:
    """List TeX candidates under root, sorted by relative path."""
    sources: list[SourceFile] = []
    for path in root.rglob("*"):
        if not path.is_file() or path.suffix.lower() not in TEX_SUFFIXES:
            continue
        rel_parts = path.relative_to(root).parts
        if any(part in _IGNORED_DIRS or part.startswith(".") for part in rel_parts):
            continue
        text = path.read_text(encoding="utf-8", errors="replace")
        sources.append(
            SourceFile(
                path=path,
                relative="/".join(rel_parts),
                size=path.stat().st_size,
                is_document_root=bool(_DOCUMENT_ROOT.search(text)),
            )
        )
    sources.sort(key=lambda s: s.relative)
    return sources


def choose_entry_point(sources: Sequence[SourceFile]) -> EntryPoint | None:
    """Apply the selection priority to an already collected candidate set."""
    if not sources:
        return None

    named = [s for s in sources if s.path.stem.lower() in MAIN_STEMS]
    if named:
        best = min(named, key=lambda s: (not s.is_document_root, s.depth, s.relative))
        return EntryPoint(best.path, SelectionReason.NAMED)

    if len(sources) == 1:
        return EntryPoint(sources[0].path, SelectionReason.SOLE)

    roots = [s for s in sources if s.is_document_root]
    if roots:
        best = min(roots, key=lambda s: (s.is_supplementary, -s.size, s.relative))
        return EntryPoint(best.path, SelectionReason.DOCUMENT_ROOT)

    best = min(sources, key=lambda s: (-s.size, s.relative))
    return EntryPoint(best.path, SelectionReason.LARGEST)


def select_entry_point(root: Path) -> EntryPoint | None:
    """Select the entry point of the submission unpacked under root."""
    return choose_entry_point(collect_sources(root))
