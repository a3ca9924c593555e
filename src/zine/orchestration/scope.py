"""Which entities a rebuild has to re-render.

The graph is always recomputed and listings, feed and sitemap are always re-emitted.
A scope only narrows the per-entity work: article pages and standalone pages.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from zine.config.loader import CONTENT_DIR, INTRO_FILE, PAGES_DIR, ZINE_FILE
from zine.core.graph import ContentGraph
from zine.core.types import Article, Page

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BuildScope:
    full: bool = True
    articles: frozenset[Path] = frozenset()
    intros: frozenset[Path] = frozenset()
    pages: frozenset[Path] = frozenset()

    @classmethod
    def full_build(cls) -> BuildScope:
        return cls(full=True)

    @classmethod
    def from_changes(cls, changes: Iterable[Path], source: Path) -> BuildScope:
        """Classify changed files.

        A ``zine.toml``, a static asset, a deleted file or any file zine does not know
        about forces a full rebuild.
        """
        source = source.resolve()
        articles: set[Path] = set()
        intros: set[Path] = set()
        pages: set[Path] = set()

        for change in changes:
            path = change.resolve()
            try:
                relative = path.relative_to(source)
            except ValueError:
                logger.debug("Full rebuild: %s is outside %s", path, source)
                return cls.full_build()

            top = relative.parts[0] if relative.parts else ""
            if path.name == ZINE_FILE or path.suffix != ".md" or not path.exists():
                logger.debug("Full rebuild triggered by %s", relative)
                return cls.full_build()
            if top == CONTENT_DIR and path.name == INTRO_FILE:
                intros.add(path)
            elif top == CONTENT_DIR:
                articles.add(path)
            elif top == PAGES_DIR:
                pages.add(path)
            else:
                logger.debug("Full rebuild triggered by %s", relative)
                return cls.full_build()

        return cls(full=False, articles=frozenset(articles), intros=frozenset(intros), pages=frozenset(pages))

    def union(self, other: BuildScope) -> BuildScope:
        if self.full or other.full:
            return BuildScope.full_build()
        return BuildScope(
            full=False,
            articles=self.articles | other.articles,
            intros=self.intros | other.intros,
            pages=self.pages | other.pages,
        )

    def articles_to_render(self, graph: ContentGraph) -> list[Article]:
        """Changed articles plus every article whose cross-links point at one of them.

        Articles and their translations render together, so a change to either selects
        the original article.
        """
        everything = list(graph.iter_articles())
        if self.full:
            return everything
        changed = [
            article
            for article in everything
            if any(variant.source.resolve() in self.articles for variant in article.with_translations())
        ]
        variants = [variant for article in changed for variant in article.with_translations()]
        targets = {f"`{variant.url}`" for variant in variants}
        targets |= {f"`/{variant.issue_slug}/{variant.slug}`" for variant in variants}
        return [
            article
            for article in everything
            if article in changed
            or any(target in variant.markdown for variant in article.with_translations() for target in targets)
        ]

    def pages_to_render(self, graph: ContentGraph) -> list[Page]:
        """Changed pages and their ancestors, whose child listings show the titles."""
        if self.full:
            return list(graph.pages)
        changed = {page.path for page in graph.pages if page.source and page.source.resolve() in self.pages}
        wanted = set(changed)
        for path in changed:
            parts = path.strip("/").split("/")
            wanted.update("/" + "/".join(parts[:depth]) for depth in range(1, len(parts)))
        return [page for page in graph.pages if page.path in wanted]
