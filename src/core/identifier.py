# src/core/identifier.py — v1
"""Identifier normalizer: raw arXiv ids to canonical DocumentKeys.

Accepts both identifier schemes arXiv has used:
  new style  1601.00001, 2309.12345v2
  old style  hep-th/9901001, math.GT/0309136v1
plus the decorations users paste in (an "arXiv:" prefix, a ".pdf" suffix).
"""

from __future__ import annotations

import re

from markxiv.core.errors import InvalidDocumentId
from markxiv.core.models import DocumentKey

_NEW_STYLE = r"\d{4}\.\d{4,5}"
_OLD_STYLE = r"[a-z]+(?:-[a-z]+)*(?:\.[A-Z]{2})?/\d{7}"

_ID_PATTERN = re.compile(
    rf"^(?P<base>{_NEW_STYLE}|{_OLD_STYLE})(?:v(?P<version>\d+))?$"
)

_PREFIX = "arxiv:"
_PDF_SUFFIX = ".pdf"


def parse_document_key(raw: str) -> DocumentKey:
    """Canonicalize a raw identifier.

    Args:
        raw: Identifier as received from a caller.

    Returns:
        DocumentKey with the version split off (None means latest).

    Raises:
        InvalidDocumentId: If the identifier is empty, non-ASCII or does not
            match either arXiv identifier scheme.
    """
    text = strip_decorations(raw)
    if not text:
        raise InvalidDocumentId(raw, "empty identifier")
    if not text.isascii():
        raise InvalidDocumentId(raw, "non-ASCII identifier")

    match = _ID_PATTERN.match(text)
    if match is None:
        raise InvalidDocumentId(raw)

    version = match.group("version")
    if version is not None:
        number = int(version)
        if number < 1:
            raise InvalidDocumentId(raw, "version numbers start at 1")
        version = str(number)

    return DocumentKey(base_id=match.group("base"), version=version)


def strip_decorations(raw: str) -> str:
    """Trim whitespace, an "arXiv:" prefix and a ".pdf" suffix."""
    text = raw.strip()
    if text[: len(_PREFIX)].lower() == _PREFIX:
        text = text[len(_PREFIX):].strip()
    if text[-len(_PDF_SUFFIX):].lower() == _PDF_SUFFIX:
        text = text[: -len(_PDF_SUFFIX)]
    return text


def is_valid_document_id(raw: str) -> bool:
    """Return True if raw parses into a DocumentKey."""
    try:
        parse_document_key(raw)
    except InvalidDocumentId:
        return False
    return True
