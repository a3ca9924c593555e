"""Assembles the :class:`ContentGraph` from a loaded :class:`SourceTree`.

Resolution validates every cross reference and collects all problems before deciding
whether the build can proceed. Nothing in the returned graph is mutated afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from zine.config.loader import LoadedIssue, LoadedTranslation, SourceTree
from zine.config.schema import AuthorConfig, RootConfig, TopicConfig
from zine.core.diagnostics import Diagnostics
from zine.core.graph import ContentGraph
from zine.core.i18n import LOCALES, is_known_locale
from zine.core.pages import build_pages
from zine.core.types import (
    ANONYMOUS,
    DEFAULT_AVATAR,
    Article,
    Author,
    Issue,
    Menu,
    Page,
    Site,
    Theme,
    Topic,
)

logger = logging.getLogger(__name__)


def _normalize_path(path: str) -> str:
    return "/" + path.strip().strip("/")


def _resolve_site(config: RootConfig, diagnostics: Diagnostics) -> Site:
    site = config.site
    if not is_known_locale(site.locale):
        known = ", ".join(LOCALES)
        diagnostics.fatal("site", f"unknown locale {site.locale!r} (known: {known})", field="locale")
    return Site(
        name=site.name,
        url=site.url,
        locale=site.locale,
        description=site.description,
        cdn=site.cdn,
        edit_url=site.edit_url,
        social_image=site.social_image,
        menus=tuple(Menu(name=menu.name, url=menu.url) for menu in site.menus),
    )


def _resolve_theme(config: RootConfig, footer_html: str | None) -> Theme:
    theme = config.theme
    return Theme(
        primary_color=theme.primary_color,
        primary_text_color=theme.primary_text_color,
        primary_link_color=theme.primary_link_color,
        secondary_color=theme.secondary_color,
        background_image=theme.background_image,
        footer_template=footer_html,
        default_cover=theme.default_cover,
    )


def _resolve_authors(table: dict[str, AuthorConfig], diagnostics: Diagnostics) -> dict[str, Author]:
    authors: dict[str, Author] = {}
    for author_id, config in table.items():
        key = author_id.lower()
        if key in authors:
            diagnostics.fatal(
                f"author:{author_id}",
                f"duplicate author id (case-insensitive match with {authors[key].id!r})",
                field="id",
            )
            continue
        authors[key] = Author(
            id=author_id,
            name=config.name or author_id,
            bio=config.bio,
            avatar=config.avatar or DEFAULT_AVATAR,
            editor=config.editor,
        )
    return authors


def _resolve_topics(table: dict[str, TopicConfig]) -> dict[str, Topic]:
    return {
        topic_id.lower(): Topic(id=topic_id, name=config.name or topic_id, description=config.description)
        for topic_id, config in table.items()
    }


class _Resolver:
    """Per-call state for one resolution pass."""

    def __init__(self, tree: SourceTree, config: RootConfig, diagnostics: Diagnostics) -> None:
        self.tree = tree
        self.config = config
        self.diagnostics = diagnostics
        self.authors = _resolve_authors(config.authors, diagnostics)
        self.topics = _resolve_topics(config.topics)
        self.implicit_topics: dict[str, Topic] = {}
        self.article_paths: dict[str, str] = {}

    def _article_authors(self, entity: str, author_ids: list[str]) -> tuple[Author, ...]:
        resolved: list[Author] = []
        for author_id in author_ids:
            author = self.authors.get(author_id.lower())
            if author is None:
                self.diagnostics.warn(entity, f"unknown author {author_id!r}, using anonymous byline", field="author")
                author = ANONYMOUS
            if author not in resolved:
                resolved.append(author)
        return tuple(resolved)

    def _article_topics(self, entity: str, topics: list[str]) -> tuple[str, ...]:
        for topic_id in topics:
            key = topic_id.lower()
            if key in self.topics or key in self.implicit_topics:
                continue
            self.diagnostics.warn(entity, f"unknown topic {topic_id!r}", field="topic")
            self.implicit_topics[key] = Topic(id=topic_id, name=topic_id)
        return tuple(topics)

    def _claim(self, entity: str, slug: str, path: str | None, seen_slugs: dict[str, str], file: str) -> bool:
        """Reserve ``slug`` within the issue and ``path`` across the site."""
        if slug in seen_slugs:
            self.diagnostics.fatal(
                entity,
                f"duplicate article slug {slug!r} (first declared by {seen_slugs[slug]})",
                field="slug",
            )
            return False
        seen_slugs[slug] = file

        if path is not None:
            if path in self.article_paths:
                self.diagnostics.fatal(
                    entity,
                    f"duplicate article path {path} (first declared by {self.article_paths[path]})",
                    field="path",
                )
                return False
            self.article_paths[path] = entity
        return True

    def _resolve_translation(
        self, original: Article, loaded: LoadedTranslation, seen_slugs: dict[str, str]
    ) -> Article | None:
        config = loaded.config
        entity = f"issue:{original.issue_slug}/article:{original.slug}"
        if not is_known_locale(loaded.locale):
            known = ", ".join(LOCALES)
            self.diagnostics.fatal(
                entity, f"unknown translation locale {loaded.locale!r} (known: {known})", field=f"i18n.{loaded.locale}"
            )
            return None

        slug = config.slug or Path(config.file).stem
        path = _normalize_path(config.path) if config.path else None
        if not self._claim(f"{entity}/i18n:{loaded.locale}", slug, path, seen_slugs, config.file):
            return None

        if config.author_ids:
            author_ids = tuple(config.author_ids)
            authors = self._article_authors(entity, config.author_ids)
        else:
            author_ids, authors = original.author_ids, original.authors
        return Article(
            issue_slug=original.issue_slug,
            slug=slug,
            file=config.file,
            source=loaded.source,
            title=config.title,
            pub_date=config.pub_date or original.pub_date,
            markdown=loaded.markdown,
            author_ids=author_ids,
            authors=authors,
            path=path,
            cover=config.cover or original.cover,
            publish=original.publish,
            topics=original.topics,
            locale=loaded.locale,
        )

    def resolve_issue(self, loaded: LoadedIssue) -> Issue:
        config = loaded.config
        slug = config.slug or loaded.dir_name
        entity = f"issue:{slug}"

        articles: list[Article] = []
        seen_slugs: dict[str, str] = {}
        for item in loaded.articles:
            article_config = item.config
            article_slug = article_config.slug or Path(article_config.file).stem
            article_entity = f"{entity}/article:{article_slug}"
            path = _normalize_path(article_config.path) if article_config.path else None
            if not self._claim(article_entity, article_slug, path, seen_slugs, article_config.file):
                continue

            article = Article(
                issue_slug=slug,
                slug=article_slug,
                file=article_config.file,
                source=item.source,
                title=article_config.title,
                pub_date=article_config.pub_date,
                markdown=item.markdown,
                author_ids=tuple(article_config.author_ids),
                authors=self._article_authors(article_entity, article_config.author_ids),
                path=path,
                cover=article_config.cover,
                publish=article_config.publish,
                featured=article_config.featured,
                topics=self._article_topics(article_entity, article_config.topics),
            )
            translations = (self._resolve_translation(article, t, seen_slugs) for t in item.translations)
            articles.append(replace(article, translations=tuple(t for t in translations if t is not None)))

        # Stable sort: same-day articles keep declaration order.
        articles.sort(key=lambda article: article.pub_date, reverse=True)
        return Issue(
            slug=slug,
            number=config.number,
            title=config.title,
            dir=loaded.dir,
            intro=loaded.intro,
            cover=config.cover,
            articles=tuple(articles),
        )

    def resolve_issues(self) -> tuple[Issue, ...]:
        issues: list[Issue] = []
        seen: dict[str, str] = {}
        for loaded in self.tree.issues:
            slug = loaded.config.slug or loaded.dir_name
            if slug in seen:
                self.diagnostics.fatal(
                    f"issue:{slug}",
                    f"duplicate issue slug {slug!r} (first declared by directory {seen[slug]})",
                    field="slug",
                )
                continue
            seen[slug] = loaded.dir_name
            issues.append(self.resolve_issue(loaded))
        issues.sort(key=lambda issue: issue.number)
        return tuple(issues)

    def check_page_collisions(self, pages: tuple[Page, ...], issues: tuple[Issue, ...]) -> None:
        taken: dict[str, str] = {}
        for issue in issues:
            taken[issue.url] = f"issue:{issue.slug}"
            for article in issue.articles:
                for variant in article.with_translations():
                    taken[variant.url] = f"issue:{issue.slug}/article:{variant.slug}"
        for page in pages:
            if page.path in taken:
                self.diagnostics.fatal(
                    f"page:{page.path}", f"page path collides with {taken[page.path]}", field="path"
                )


def resolve(tree: SourceTree) -> ContentGraph:
    """Validate the loaded tree and assemble the content graph.

    Raises:
        ResolutionError: if any loading or resolution problem is fatal. The error
            carries every problem found, warnings included.

    """
    diagnostics = Diagnostics(problems=list(tree.diagnostics.problems))
    if tree.config is None:
        if not diagnostics.has_fatal:
            diagnostics.fatal("site", "no root configuration loaded")
        diagnostics.raise_if_fatal()

    config = tree.config
    resolver = _Resolver(tree, config, diagnostics)
    site = _resolve_site(config, diagnostics)
    theme = _resolve_theme(config, tree.footer_html)
    issues = resolver.resolve_issues()
    pages = build_pages(tree.pages, diagnostics)
    resolver.check_page_collisions(pages, issues)

    diagnostics.raise_if_fatal()

    topics = {**resolver.implicit_topics, **resolver.topics}
    graph = ContentGraph(
        site=site,
        theme=theme,
        markdown=config.markdown,
        authors=resolver.authors,
        issues=issues,
        pages=pages,
        topics=topics,
        diagnostics=tuple(diagnostics.problems),
    )
    logger.info(
        "Resolved %d issue(s), %d article(s), %d page(s) with %d warning(s)",
        len(issues),
        sum(len(issue.articles) for issue in issues),
        len(pages),
        len(diagnostics.warnings),
    )
    return graph
