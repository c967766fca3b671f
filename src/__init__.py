# src/__init__.py — v1
"""markxiv: arXiv papers as cached, normalized Markdown."""

from markxiv.version import __version__

__all__ = ["__version__"]
