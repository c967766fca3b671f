# src/extraction/archive_extractor.py — v1
"""Unpack arXiv source payloads into a working directory.

arXiv serves three shapes from the e-print endpoint: a (usually gzipped) tar
of the submission, a single gzipped .tex file, or, rarely, bare TeX. All three
end up as files under dest. Anything else is an ExtractionError.
"""

from __future__ import annotations

import gzip
import io
import logging
import tarfile
import threading
import zlib
from pathlib import Path

from markxiv.core.errors import ExtractionError

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"
_SNIFF_BYTES = 4096
SINGLE_FILE_NAME = "main.tex"


def unpack_archive(data: bytes, dest: Path, stop: threading.Event | None = None) -> list[Path]:
    """Extract a source payload into dest.

    Args:
        data: Raw payload bytes from the source provider.
        dest: Existing, empty directory owned by the caller.
        stop: Checked between tar members; once set, unpacking gives up
            before writing anything more into dest.

    Returns:
        Extracted regular files, sorted by path.

    Raises:
        ExtractionError: If the payload is empty, corrupt or not a
            recognizable archive, or if stop was set.
    """
    if not data:
        raise ExtractionError("empty source archive")

    raw = data
    if raw.startswith(_GZIP_MAGIC):
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError, zlib.error) as e:
            raise ExtractionError(f"corrupt gzip stream: {e}") from e

    if _is_tar(raw):
        _extract_tar(raw, dest, stop)
    elif _looks_like_tex(raw):
        (dest / SINGLE_FILE_NAME).write_bytes(raw)
    else:
        raise ExtractionError("unrecognized source archive format")

    files = sorted(p for p in dest.rglob("*") if p.is_file())
    if not files:
        raise ExtractionError("source archive contained no files")
    logger.debug("Unpacked %d files into %s", len(files), dest)
    return files


def _is_tar(raw: bytes) -> bool:
    try:
        return tarfile.is_tarfile(io.BytesIO(raw))
    except (OSError, tarfile.TarError):
        return False


def _extract_tar(raw: bytes, dest: Path, stop: threading.Event | None) -> None:
    try:
        with tarfile.open(fileobj=io.BytesIO(raw), mode="r:*") as tar:
            for member in tar.getmembers():
                if stop is not None and stop.is_set():
                    raise ExtractionError("unpacking stopped before completion")
                try:
                    tar.extract(member, dest, filter="data")
                except tarfile.FilterError as e:
                    logger.warning("Skipping unsafe archive member %s: %s", member.name, e)
    except (tarfile.TarError, EOFError, zlib.error) as e:
        raise ExtractionError(f"corrupt tar archive: {e}") from e
    except OSError as e:
        raise ExtractionError(f"failed to extract tar archive: {e}") from e


def _looks_like_tex(raw: bytes) -> bool:
    head = raw[:_SNIFF_BYTES]
    return b"\x00" not in head and b"\\" in head
