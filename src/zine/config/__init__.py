"""Configuration for zine.

Two kinds of configuration live here: the content schema of ``zine.toml`` files
(:mod:`zine.config.schema`) and the runtime settings of the tool itself
(:mod:`zine.config.settings`). Loading a content tree from disk is in
:mod:`zine.config.loader`.
"""

from zine.config.schema import (
    ArticleConfig,
    AuthorConfig,
    IssueConfig,
    MarkdownConfig,
    RootConfig,
    SiteConfig,
    ThemeConfig,
)
from zine.config.settings import BuildSettings, PreviewSettings, ServeSettings, ZineSettings

__all__ = [
    "ArticleConfig",
    "AuthorConfig",
    "BuildSettings",
    "IssueConfig",
    "MarkdownConfig",
    "PreviewSettings",
    "RootConfig",
    "ServeSettings",
    "SiteConfig",
    "ThemeConfig",
    "ZineSettings",
]
