"""Whitespace normalization for extracted page text."""

from __future__ import annotations

import re

# A paragraph break is a line break, optional blank-ish whitespace, and
# another line break. Everything else collapses to a single space.
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Return ``text`` with canonical whitespace.

    Runs of whitespace inside a paragraph become one space, runs of blank
    lines become exactly one blank line, and the result is trimmed.
    ``normalize(normalize(x)) == normalize(x)`` for every input.
    """
    if not text:
        return ""
    source = text.replace("\r\n", "\n").replace("\r", "\n")
    paragraphs = []
    for chunk in PARAGRAPH_BREAK.split(source):
        collapsed = _WHITESPACE_RUN.sub(" ", chunk).strip()
        if collapsed:
            paragraphs.append(collapsed)
    return "\n\n".join(paragraphs)
