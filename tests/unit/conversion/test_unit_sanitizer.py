# tests/unit/conversion/test_unit_sanitizer.py — v1
"""Tests for conversion/sanitizer.py — body and metadata cleanup."""

from __future__ import annotations

import pytest

from markxiv.conversion.sanitizer import clean_inline, sanitize, strip_tags


class TestSanitize:
    def test_removes_figure_blocks_with_caption(self):
        text = 'Before\n<figure id="f1">\n<img src="a.png" />\n<figcaption>Cap</figcaption>\n</figure>\nAfter'
        result = sanitize(text)
        assert "Cap" not in result
        assert "img" not in result
        assert result == "Before\n\nAfter"

    def test_strips_tags_keeps_text(self):
        assert sanitize('<span class="math">x + y</span>') == "x + y"

    def test_removes_comments(self):
        assert sanitize("a<!-- hidden\nstuff -->b") == "ab"

    def test_self_closing_tags(self):
        assert sanitize("line<br/>next") == "linenext"

    def test_collapses_blank_lines(self):
        assert sanitize("a\n\n\n\n  \n\nb") == "a\n\nb"

    def test_normalizes_crlf(self):
        assert sanitize("a\r\n\r\n\r\nb") == "a\n\nb"

    def test_normalizes_bare_cr(self):
        assert sanitize("a\r\r\nb") == "a\n\nb"
        assert sanitize("a\rb") == "a\nb"

    def test_trims(self):
        assert sanitize("\n\n  body  \n\n") == "body"

    def test_leaves_comparisons_alone(self):
        assert sanitize("if a < b and c > d") == "if a < b and c > d"

    def test_empty(self):
        assert sanitize("") == ""

    @pytest.mark.parametrize(
        "text",
        [
            "<<b>b>text</b>",
            "<fig<figure>x</figure>ure>y</figure>",
            "<!-<!-- -->- x -->",
            "a\n\n<div>\n\n</div>\n\nb",
            "plain text",
            "a\r\r\nb",
            "a\r\n\r\r\n\r\nb",
        ],
    )
    def test_idempotent(self, text):
        once = sanitize(text)
        assert sanitize(once) == once


class TestInline:
    def test_strip_tags(self):
        assert strip_tags("<em>x</em>") == "x"

    def test_clean_inline_entities_and_whitespace(self):
        assert clean_inline("  A &amp; B\n   on <i>graphs</i>  ") == "A & B on graphs"
