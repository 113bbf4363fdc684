"""Utility helpers shared across CLI and session modules."""

from .text import dedupe, escape_html, normalize_space, to_plain_text, unescape_html

__all__ = ["dedupe", "escape_html", "normalize_space", "to_plain_text", "unescape_html"]
