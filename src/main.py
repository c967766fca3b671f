# src/main.py — v1
"""CLI entry point: convert and sweep commands.

Usage:
    markxiv convert <id> [--refresh] [-o FILE] [--json]
    markxiv sweep
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from markxiv.core.errors import ConversionFailure, FailureKind, InvalidDocumentId
from markxiv.version import __version__

logger = logging.getLogger(__name__)

EXIT_INVALID_ID = 2
EXIT_CODES: dict[FailureKind, int] = {
    FailureKind.NOT_FOUND: 3,
    FailureKind.SOURCE_UNAVAILABLE: 4,
    FailureKind.UPSTREAM_ERROR: 5,
    FailureKind.EXTRACTION_ERROR: 6,
    FailureKind.CONVERSION_ERROR: 7,
    FailureKind.ALL_FALLBACKS_EXHAUSTED: 8,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from markxiv.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except InvalidDocumentId as exc:
        logger.error("%s", exc)
        return EXIT_INVALID_ID
    except ConversionFailure as exc:
        logger.error("%s: %s", exc.kind.value, exc)
        return EXIT_CODES.get(exc.kind, 1)
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="markxiv",
        description=f"markxiv v{__version__}: arXiv papers as Markdown",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- convert ---
    p_convert = subparsers.add_parser(
        "convert", help="Convert one arXiv paper to Markdown",
    )
    p_convert.add_argument("paper_id", help="arXiv id, e.g. 1601.00001 or hep-th/9901001v2")
    p_convert.add_argument(
        "--refresh", action="store_true",
        help="Ignore cached copies and rebuild",
    )
    p_convert.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write to FILE instead of stdout",
    )
    p_convert.add_argument(
        "--json", action="store_true",
        help="Emit the artifact as JSON instead of Markdown",
    )
    p_convert.set_defaults(func=_cmd_convert)

    # --- sweep ---
    p_sweep = subparsers.add_parser(
        "sweep", help="Run one disk-cache sweep",
    )
    p_sweep.set_defaults(func=_cmd_sweep)

    return parser


async def _cmd_convert(args: argparse.Namespace, settings) -> int:
    """Resolve one paper and print or write it."""
    from markxiv.api.facade import convert

    artifact = await convert(args.paper_id, refresh=args.refresh, settings=settings)
    text = artifact.model_dump_json(indent=2) + "\n" if args.json else artifact.to_markdown()

    if args.output is None:
        sys.stdout.write(text)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info("Wrote %s (%d bytes)", args.output, len(text.encode("utf-8")))
    return 0


async def _cmd_sweep(args: argparse.Namespace, settings) -> int:
    """Enforce the disk-cache byte cap once."""
    from markxiv.cache.cache_factory import create_disk_cache

    disk_cache = create_disk_cache(settings)
    if disk_cache is None:
        print("Disk cache is disabled (MARKXIV_DISK_CACHE_CAP_BYTES=0)")
        return 0

    await disk_cache.start(run_sweeper=False)
    try:
        removed = await disk_cache.sweep()
    finally:
        await disk_cache.close()

    print(f"\nSweep complete:")
    print(f"  Removed:    {len(removed)}")
    print(f"  Remaining:  {disk_cache.size_bytes} bytes")
    print(f"  Cap:        {disk_cache.cap_bytes} bytes")
    return 0


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from markxiv.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
