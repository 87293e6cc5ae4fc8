"""Helpers for pulling link references out of raw HTML and classifying them."""

from __future__ import annotations

import re
from typing import List

from .records import LinkKind

# Not a full HTML parser; attribute values must not contain a literal quote.
LINK_PATTERN = re.compile(r'(?:href|src)="([^"]+)"')

SKIP_PREFIXES = ("mailto:", "tel:", "javascript:", "#")
EXTERNAL_PREFIXES = ("http://", "https://")


def extract_references(html: str) -> List[str]:
    """Return every href/src value in document order, duplicates included."""
    return [match.group(1).strip() for match in LINK_PATTERN.finditer(html or "")]


def classify_reference(link: str) -> LinkKind:
    """Decide whether a raw reference is skipped, internal, or external."""
    if not link or link.startswith(SKIP_PREFIXES):
        return LinkKind.skip
    if link.startswith(EXTERNAL_PREFIXES):
        return LinkKind.external
    return LinkKind.internal


def strip_fragment(link: str) -> str:
    """Drop a trailing ``#fragment``; the path before it is what must exist."""
    base, _, _ = link.partition("#")
    return base
