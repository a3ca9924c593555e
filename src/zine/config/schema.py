"""Pydantic schema of the ``zine.toml`` content files.

The root ``zine.toml`` declares the site, theme, markdown options, authors, topics and
optionally the list of issue directories. Each issue directory carries its own
``zine.toml`` with the issue metadata and its ``[[article]]`` entries.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LOCALE = "en"


class MenuEntry(BaseModel):
    name: str
    url: str


class SiteConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    url: str = "http://localhost"
    description: str | None = None
    cdn: str | None = None
    edit_url: str | None = None
    social_image: str | None = None
    locale: str = DEFAULT_LOCALE
    menus: list[MenuEntry] = Field(default_factory=list, alias="menu")

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class ThemeConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    primary_color: str = Field(default="#2563eb", alias="primary-color")
    primary_text_color: str = Field(default="#ffffff", alias="primary-text-color")
    primary_link_color: str = Field(default="#2563eb", alias="primary-link-color")
    secondary_color: str = Field(default="#eff3f7", alias="secondary-color")
    background_image: str | None = Field(default=None, alias="background-image")
    footer_template: str | None = Field(default=None, alias="footer-template")
    default_cover: str | None = Field(default=None, alias="default-cover")


class MarkdownConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    highlight_code: bool = True
    highlight_theme: str = "monokai"


class AuthorConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    bio: str = ""
    avatar: str | None = None
    editor: bool = False


class TopicConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    description: str | None = None


class IssueRef(BaseModel):
    """A root-level ``[[issue]]`` declaration pointing at an issue directory."""

    dir: str


class RootConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    site: SiteConfig
    theme: ThemeConfig = Field(default_factory=ThemeConfig)
    markdown: MarkdownConfig = Field(default_factory=MarkdownConfig)
    authors: dict[str, AuthorConfig] = Field(default_factory=dict)
    topics: dict[str, TopicConfig] = Field(default_factory=dict)
    issues: list[IssueRef] = Field(default_factory=list, alias="issue")


class ArticleTranslationConfig(BaseModel):
    """An ``[article.i18n.<locale>]`` table.

    Unset ``author``, ``cover`` and ``pub_date`` fall back to the translated article.
    """

    model_config = ConfigDict(extra="ignore")

    file: str
    title: str
    slug: str | None = None
    path: str | None = None
    author: str | list[str] | None = None
    cover: str | None = None
    pub_date: date | None = None

    @property
    def author_ids(self) -> list[str]:
        if self.author is None:
            return []
        if isinstance(self.author, str):
            return [self.author]
        return list(self.author)


class ArticleConfig(ArticleTranslationConfig):
    pub_date: date
    publish: bool = False
    featured: bool = False
    topics: list[str] = Field(default_factory=list, alias="topic")
    i18n: dict[str, ArticleTranslationConfig] = Field(default_factory=dict)


class IssueConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    title: str
    slug: str | None = None
    cover: str | None = None
    articles: list[ArticleConfig] = Field(default_factory=list, alias="article")
