"""Heading anchors and the nested table of contents."""

from __future__ import annotations

import re
from collections.abc import Iterable

from zine.core.types import TocEntry
from zine.markdown.nodes import Heading

FALLBACK_ANCHOR = "section"


def anchor_slug(text: str) -> str:
    """Lowercase, drop punctuation, join words with ``-``. Non-ASCII letters are kept."""
    slug = text.strip().lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or FALLBACK_ANCHOR


class AnchorRegistry:
    """Hands out unique anchor ids within one document.

    The first occurrence of a slug is used as is; later ones get ``-1``, ``-2``...
    """

    def __init__(self) -> None:
        self._used: set[str] = set()
        self._counters: dict[str, int] = {}

    def anchor_for(self, text: str) -> str:
        base = anchor_slug(text)
        anchor = base
        while anchor in self._used:
            count = self._counters.get(base, 0) + 1
            self._counters[base] = count
            anchor = f"{base}-{count}"
        self._used.add(anchor)
        return anchor


def build_toc(headings: Iterable[Heading]) -> list[TocEntry]:
    """Nest headings by level.

    A deeper heading becomes a child of the most recent shallower entry, whatever
    the gap between levels, so ``[2, 4, 2, 3]`` gives two roots with one child each.
    """
    roots: list[TocEntry] = []
    stack: list[TocEntry] = []
    for heading in headings:
        entry = TocEntry(level=heading.level, anchor=heading.anchor, text=heading.text)
        while stack and stack[-1].level >= heading.level:
            stack.pop()
        if stack:
            stack[-1].children.append(entry)
        else:
            roots.append(entry)
        stack.append(entry)
    return roots
