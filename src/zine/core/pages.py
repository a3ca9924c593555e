"""Mapping of the ``pages/`` file tree onto URL paths.

``blog/first.md`` becomes ``/blog/first``; ``blog/index.md`` or ``blog.md`` becomes
``/blog``. Every intermediate directory that has no explicit index gets a synthesized
placeholder page listing its children, so every path prefix of an emitted page is
itself an emitted page.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import PurePosixPath

from zine.config.loader import LoadedPage
from zine.core.diagnostics import Diagnostics
from zine.core.types import Page
from zine.core.utils import capitalize

_HEADING_RE = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)


def page_path(relative: PurePosixPath) -> str:
    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "index":
        parts.pop()
    return "/" + "/".join(parts)


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] or "/"


def _title_from_path(path: str) -> str:
    segment = path.rsplit("/", 1)[-1]
    return capitalize(segment.replace("-", " ").replace("_", " "))


def _title_for(markdown: str, path: str) -> str:
    match = _HEADING_RE.search(markdown)
    if match:
        return match.group(1).strip()
    return _title_from_path(path)


def build_pages(loaded: Iterable[LoadedPage], diagnostics: Diagnostics) -> tuple[Page, ...]:
    explicit: dict[str, LoadedPage] = {}
    for page in loaded:
        path = page_path(page.relative)
        entity = f"page:{page.relative}"
        if path == "/":
            diagnostics.fatal(entity, "a page cannot take the home page path /", field="path")
            continue
        if path in explicit:
            first = explicit[path].relative
            diagnostics.fatal(entity, f"duplicate page path {path} (already defined by {first})", field="path")
            continue
        explicit[path] = page

    synthesized: set[str] = set()
    for path in explicit:
        parent = _parent(path)
        while parent != "/":
            if parent not in explicit:
                synthesized.add(parent)
            parent = _parent(parent)

    all_paths = sorted(set(explicit) | synthesized)
    children: dict[str, list[str]] = {path: [] for path in all_paths}
    for path in all_paths:
        parent = _parent(path)
        if parent in children:
            children[parent].append(path)

    pages: list[Page] = []
    for path in all_paths:
        source = explicit.get(path)
        if source is None:
            pages.append(
                Page(
                    path=path,
                    title=_title_from_path(path),
                    synthesized=True,
                    children=tuple(children[path]),
                )
            )
            continue
        pages.append(
            Page(
                path=path,
                title=_title_for(source.markdown, path),
                markdown=source.markdown,
                source=source.source,
                children=tuple(children[path]),
            )
        )
    return tuple(pages)
