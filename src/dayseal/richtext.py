"""Helpers for editor content payloads.

Content produced by the rich-text editor is HTML-ish; plain text is also
accepted. Nothing here validates markup, it only extracts the visible text.
"""

from __future__ import annotations

import html
import re

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def strip_markup(content: str) -> str:
    """Return the visible text of a content payload.

    Tags are removed, entities decoded and runs of whitespace collapsed.
    """
    if not content:
        return ""
    text = _TAG_RE.sub(" ", content)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def is_blank(content: str) -> bool:
    """True when the payload has no visible text (``<p>   </p>`` is blank)."""
    if not isinstance(content, str):
        return True
    return strip_markup(content) == ""
