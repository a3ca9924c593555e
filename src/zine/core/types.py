"""Resolved entities of the content graph.

Everything here is produced by :mod:`zine.core.resolver` and is treated as read-only
once resolution completes. Articles reference authors one way only; the reverse
listing is computed on demand by :class:`zine.core.graph.ContentGraph`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

DEFAULT_AVATAR = "/static/avatar.png"


@dataclass(frozen=True, slots=True)
class Menu:
    name: str
    url: str


@dataclass(frozen=True, slots=True)
class Site:
    name: str
    url: str
    locale: str = "en"
    description: str | None = None
    cdn: str | None = None
    edit_url: str | None = None
    social_image: str | None = None
    menus: tuple[Menu, ...] = ()


@dataclass(frozen=True, slots=True)
class Theme:
    primary_color: str
    primary_text_color: str
    primary_link_color: str
    secondary_color: str
    background_image: str | None = None
    footer_template: str | None = None
    default_cover: str | None = None


@dataclass(frozen=True, slots=True)
class Author:
    id: str
    name: str
    bio: str = ""
    avatar: str = DEFAULT_AVATAR
    editor: bool = False

    @property
    def is_anonymous(self) -> bool:
        return not self.id

    @property
    def url(self) -> str:
        return f"/@{self.id.lower()}"


ANONYMOUS = Author(id="", name="Anonymous")


@dataclass(frozen=True, slots=True)
class Topic:
    id: str
    name: str
    description: str | None = None

    @property
    def url(self) -> str:
        return f"/topic/{self.id.lower()}"


@dataclass(frozen=True, slots=True)
class Comment:
    author: str
    content: str
    bio: str | None = None
    avatar: str | None = None
    link: str | None = None


@dataclass(frozen=True, slots=True)
class Article:
    issue_slug: str
    slug: str
    file: str
    source: Path
    title: str
    pub_date: date
    markdown: str = ""
    author_ids: tuple[str, ...] = ()
    authors: tuple[Author, ...] = ()
    path: str | None = None
    cover: str | None = None
    publish: bool = False
    featured: bool = False
    topics: tuple[str, ...] = ()
    # ``None`` is the site locale; translations carry their own and never nest.
    locale: str | None = None
    translations: tuple[Article, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.issue_slug, self.slug)

    @property
    def url(self) -> str:
        if self.path:
            return self.path
        return f"/{self.issue_slug}/{self.slug}"

    def is_author(self, author_id: str) -> bool:
        return any(candidate.lower() == author_id.lower() for candidate in self.author_ids)

    def with_translations(self) -> tuple[Article, ...]:
        """This article followed by its translations."""
        return (self, *self.translations)


@dataclass(frozen=True, slots=True)
class Translation:
    """One entry of an article's language switcher."""

    locale: str
    name: str
    url: str


@dataclass(frozen=True, slots=True)
class Issue:
    slug: str
    number: int
    title: str
    dir: Path
    intro: str | None = None
    cover: str | None = None
    articles: tuple[Article, ...] = ()

    @property
    def url(self) -> str:
        return f"/{self.slug}"

    @property
    def published_articles(self) -> list[Article]:
        return [article for article in self.articles if article.publish]

    @property
    def featured_articles(self) -> list[Article]:
        return [article for article in self.articles if article.featured and article.publish]


@dataclass(frozen=True, slots=True)
class Page:
    """A standalone document. ``synthesized`` pages are placeholder indexes."""

    path: str
    title: str
    markdown: str = ""
    source: Path | None = None
    synthesized: bool = False
    children: tuple[str, ...] = ()

    @property
    def url(self) -> str:
        return self.path


@dataclass(slots=True)
class TocEntry:
    level: int
    anchor: str
    text: str
    children: list[TocEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "anchor": self.anchor,
            "text": self.text,
            "children": [child.to_dict() for child in self.children],
        }
