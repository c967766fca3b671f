# src/providers/atom_parser.py — v1
"""Atom feed parsing and payload sniffing for arXiv responses."""

from __future__ import annotations

import warnings

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

from markxiv.conversion.sanitizer import clean_inline
from markxiv.core.models import DocumentMetadata

PDF_SIGNATURE = b"%PDF-"
_HTML_MARKERS = (b"<!doctype html", b"<html", b"<head", b"<body")
_SNIFF_BYTES = 1024

# Feeds are parsed leniently with html.parser; tag names come out lowercased.
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)


def parse_atom_metadata(feed: str | bytes) -> DocumentMetadata | None:
    """Extract metadata from the first entry of an arXiv Atom feed.

    Returns:
        DocumentMetadata, or None when the feed has no usable entry. arXiv
        reports unknown ids with an entry whose id points at /api/errors; that
        counts as no entry.
    """
    soup = BeautifulSoup(feed, "html.parser")
    entry = soup.find("entry")
    if entry is None:
        return None

    entry_id = entry.find("id")
    if entry_id is not None and "/api/errors" in entry_id.get_text():
        return None

    title_tag = entry.find("title")
    if title_tag is None:
        return None
    title = clean_inline(title_tag.get_text())
    if not title:
        return None

    summary_tag = entry.find("summary")
    abstract = clean_inline(summary_tag.get_text()) if summary_tag is not None else ""

    authors: list[str] = []
    for author in entry.find_all("author"):
        name_tag = author.find("name")
        if name_tag is None:
            continue
        name = clean_inline(name_tag.get_text())
        if name:
            authors.append(name)

    return DocumentMetadata(title=title, abstract=abstract, authors=authors)


def looks_like_pdf(data: bytes) -> bool:
    return data.lstrip()[: len(PDF_SIGNATURE)] == PDF_SIGNATURE


def looks_like_html(data: bytes) -> bool:
    """True when the payload starts like an HTML page (e.g. an error page)."""
    head = data[:_SNIFF_BYTES].lstrip().lower()
    return any(head.startswith(marker) for marker in _HTML_MARKERS)
