"""The resolved, read-only content graph consumed by rendering."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from zine.config.schema import MarkdownConfig
from zine.core.diagnostics import Problem
from zine.core.i18n import locale_name
from zine.core.types import Article, Author, Issue, Page, Site, Theme, Topic, Translation


@dataclass(frozen=True)
class ContentGraph:
    """Site, issues, articles, authors, topics and pages of one build.

    Nothing mutates the graph once :func:`zine.core.resolver.resolve` returns it,
    so concurrent article processing reads it without locking.
    """

    site: Site
    theme: Theme
    markdown: MarkdownConfig
    authors: dict[str, Author]
    issues: tuple[Issue, ...]
    pages: tuple[Page, ...] = ()
    topics: dict[str, Topic] = field(default_factory=dict)
    diagnostics: tuple[Problem, ...] = ()

    def author(self, author_id: str) -> Author | None:
        """Find an author by id, case-insensitively."""
        return self.authors.get(author_id.lower())

    def topic(self, topic_id: str) -> Topic | None:
        return self.topics.get(topic_id.lower())

    def issue(self, slug: str) -> Issue | None:
        return next((issue for issue in self.issues if issue.slug == slug), None)

    def iter_articles(self) -> Iterator[Article]:
        """Yield every article, issues by number, articles by date (newest first)."""
        for issue in self.issues:
            yield from issue.articles

    def iter_article_pages(self) -> Iterator[Article]:
        """Yield every article followed by its translations."""
        for article in self.iter_articles():
            yield from article.with_translations()

    def article(self, issue_slug: str, slug: str) -> Article | None:
        issue = self.issue(issue_slug)
        if issue is None:
            return None
        return next((article for article in issue.articles if article.slug == slug), None)

    def article_by_path(self, path: str) -> Article | None:
        """Resolve ``/issue/slug`` or an explicit article path, translations included."""
        normalized = "/" + path.strip().strip("/")
        for article in self.iter_article_pages():
            if article.path == normalized or f"/{article.issue_slug}/{article.slug}" == normalized:
                return article
        return None

    def language_links(self, article: Article) -> list[Translation]:
        """Switcher entries for an article and its translations, sorted by language name.

        Empty when the article has no translations.
        """
        if not article.translations:
            return []
        links: list[Translation] = []
        for variant in article.with_translations():
            locale = variant.locale or self.site.locale
            links.append(Translation(locale=locale, name=locale_name(locale), url=variant.url))
        return sorted(links, key=lambda link: link.name)

    def articles_by_author(self, author_id: str, *, include_drafts: bool = False) -> list[Article]:
        """Compute the reverse author listing by scanning the graph."""
        return [
            article
            for article in self.iter_articles()
            if article.is_author(author_id) and (include_drafts or article.publish)
        ]

    def articles_by_topic(self, topic_id: str) -> list[Article]:
        wanted = topic_id.lower()
        return [
            article
            for article in self.published_articles()
            if any(topic.lower() == wanted for topic in article.topics)
        ]

    def published_articles(self) -> list[Article]:
        return [article for article in self.iter_articles() if article.publish]

    def featured_articles(self) -> list[Article]:
        return [article for issue in self.issues for article in issue.featured_articles]

    def feed_entries(self, limit: int) -> list[Article]:
        """Latest published articles across all issues, newest first."""
        # sorted() is stable, so same-day articles keep graph order.
        entries = sorted(self.published_articles(), key=lambda article: article.pub_date, reverse=True)
        return entries[:limit]

    def page(self, path: str) -> Page | None:
        return next((page for page in self.pages if page.path == path), None)
