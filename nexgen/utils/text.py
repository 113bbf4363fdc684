"""HTML/plain-text helpers shared by the session builders and the CLI."""

from __future__ import annotations

import re
from typing import Iterable, List

SPACE_RE = re.compile(r"\s+")

_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_CLOSE_RE = re.compile(r"</(p|li|h1|h2|h3|h4|h5|h6|div)>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_ENTITY_RE = re.compile(r"&(#x?[0-9a-f]+|[a-z]+);", re.IGNORECASE)
_MAX_CODE_POINT = 0x10FFFF
_SURROGATES = (0xD800, 0xDFFF)

NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "nbsp": " ",
    "ndash": "-",
    "mdash": "-",
    "rsquo": "'",
    "lsquo": "'",
    "ldquo": '"',
    "rdquo": '"',
    "times": "x",
}

# Order matters: ampersand first so later replacements are not double-escaped.
_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
)


def normalize_space(value: str) -> str:
    return SPACE_RE.sub(" ", value).strip()


def to_plain_text(html: str) -> str:
    """Convert a Canvas page body into a single line of readable text.

    Entities are decoded until nothing changes, so markup written as entities
    is stripped like real markup. Tags are removed only after that.
    """

    if not html:
        return ""
    text = html
    decoded = unescape_html(text)
    while decoded != text:
        text = decoded
        decoded = unescape_html(text)
    text = _STYLE_RE.sub(" ", text)
    text = _SCRIPT_RE.sub(" ", text)
    text = _BREAK_RE.sub("\n", text)
    text = _BLOCK_CLOSE_RE.sub("\n", text)
    text = _TAG_RE.sub(" ", text)
    return normalize_space(text)


def _is_encodable(code: int) -> bool:
    return 0 < code <= _MAX_CODE_POINT and not _SURROGATES[0] <= code <= _SURROGATES[1]


def unescape_html(value: str) -> str:
    """Decode the fixed named-entity table plus numeric references.

    Unknown names and code points that cannot be encoded as UTF-8 (zero,
    surrogates, beyond U+10FFFF) are left as written.
    """

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1).lower()
        if not key.startswith("#"):
            return NAMED_ENTITIES.get(key, match.group(0))
        try:
            code = int(key[2:], 16) if key.startswith("#x") else int(key[1:], 10)
        except ValueError:
            return match.group(0)
        if not _is_encodable(code):
            return match.group(0)
        return chr(code)

    return _ENTITY_RE.sub(_replace, value)


def escape_html(value: str) -> str:
    for raw, escaped in _ESCAPES:
        value = value.replace(raw, escaped)
    return value


def dedupe(values: Iterable[str]) -> List[str]:
    """Whitespace-normalize values and drop blanks and case-insensitive repeats."""

    seen: set[str] = set()
    out: List[str] = []
    for value in values:
        normalized = normalize_space(value)
        if not normalized:
            continue
        key = normalized.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(normalized)
    return out


__all__ = [
    "NAMED_ENTITIES",
    "SPACE_RE",
    "dedupe",
    "escape_html",
    "normalize_space",
    "to_plain_text",
    "unescape_html",
]
