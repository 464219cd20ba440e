"""HTML helpers for note fields."""
from __future__ import annotations

import re
from typing import Any

_TAG_RE = re.compile(r"<.+?>")
_BOLD_MARKDOWN_RE = re.compile(r"\*\*(.*?)\*\*")
_ESCAPED_EMPHASIS_RE = re.compile(r"&lt;(/?)(b|strong)&gt;")

_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#039;"),
)


def strip_tags(text: str) -> str:
    """Remove every ``<...>`` tag, keeping the text between them."""
    return _TAG_RE.sub("", text)


def escape_html(value: Any) -> str:
    """Escape text for a note field, keeping bold emphasis.

    ``**word**`` becomes ``<strong>word</strong>`` and existing ``<b>`` /
    ``<strong>`` tags survive escaping. Non-string values render as "".
    """
    if not isinstance(value, str):
        return ""
    text = _BOLD_MARKDOWN_RE.sub(r"<strong>\1</strong>", value)
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return _ESCAPED_EMPHASIS_RE.sub(r"<\1\2>", text)
