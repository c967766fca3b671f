# src/conversion/sanitizer.py — v1
"""Body and metadata sanitization.

sanitize() turns converter output into plain structured text: complete
<figure> blocks go first (caption and all), then comments and any remaining
HTML-like tags, then runs of blank lines are collapsed. The pass is repeated
until the text stops changing, so sanitize(sanitize(x)) == sanitize(x).
"""

from __future__ import annotations

import html
import re

_FIGURE_BLOCK = re.compile(r"<figure\b[^>]*>.*?</figure\s*>", re.IGNORECASE | re.DOTALL)
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_HTML_TAG = re.compile(r"</?[A-Za-z][A-Za-z0-9:-]*(?:\s[^<>]*)?/?>")
_BLANK_RUN = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")
_WHITESPACE = re.compile(r"\s+")
_LINE_ENDING = re.compile(r"\r\n?")


def sanitize(text: str) -> str:
    """Remove figure blocks and markup-unsafe tags from a converted body."""
    current = text
    while True:
        cleaned = _sanitize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def _sanitize_once(text: str) -> str:
    # Every substitution shrinks the text or rewrites a \r, so the fixed-point loop ends.
    text = _LINE_ENDING.sub("\n", text)
    text = _FIGURE_BLOCK.sub("", text)
    text = _HTML_COMMENT.sub("", text)
    text = strip_tags(text)
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()


def strip_tags(text: str) -> str:
    """Drop HTML-like tags, keeping their inner text."""
    return _HTML_TAG.sub("", text)


def clean_inline(text: str) -> str:
    """Normalize a single-line metadata field (title, abstract, author)."""
    text = strip_tags(html.unescape(text))
    return _WHITESPACE.sub(" ", text).strip()
