"""Reads the content tree from disk into validated configuration objects.

Loading never stops at the first problem: every unreadable file, TOML syntax error and
schema violation is recorded in the tree's :class:`Diagnostics` so that authors see
everything that is wrong at once.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from zine.config.schema import ArticleConfig, ArticleTranslationConfig, IssueConfig, RootConfig
from zine.core.diagnostics import Diagnostics

logger = logging.getLogger(__name__)

ZINE_FILE = "zine.toml"
CONTENT_DIR = "content"
PAGES_DIR = "pages"
STATIC_DIR = "static"
INTRO_FILE = "intro.md"

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(slots=True)
class LoadedTranslation:
    locale: str
    config: ArticleTranslationConfig
    source: Path
    markdown: str


@dataclass(slots=True)
class LoadedArticle:
    config: ArticleConfig
    source: Path
    markdown: str
    translations: list[LoadedTranslation] = field(default_factory=list)


@dataclass(slots=True)
class LoadedIssue:
    dir_name: str
    dir: Path
    config: IssueConfig
    intro: str | None = None
    articles: list[LoadedArticle] = field(default_factory=list)


@dataclass(slots=True)
class LoadedPage:
    relative: PurePosixPath
    source: Path
    markdown: str


@dataclass(slots=True)
class SourceTree:
    """Everything read from disk for one build, before resolution."""

    root: Path
    config: RootConfig | None = None
    issues: list[LoadedIssue] = field(default_factory=list)
    pages: list[LoadedPage] = field(default_factory=list)
    footer_html: str | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def _read_toml(path: Path, entity: str, diagnostics: Diagnostics) -> dict[str, Any] | None:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        diagnostics.fatal(entity, f"missing configuration file {path}")
    except tomllib.TOMLDecodeError as exc:
        diagnostics.fatal(entity, f"invalid TOML in {path}: {exc}")
    except OSError as exc:
        diagnostics.fatal(entity, f"cannot read {path}: {exc}")
    return None


def _validate(model: type[ModelT], data: dict[str, Any], entity: str, diagnostics: Diagnostics) -> ModelT | None:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"]) or None
            diagnostics.fatal(entity, error["msg"], field=location)
        return None


def _read_text(path: Path, entity: str, diagnostics: Diagnostics, field_name: str) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        diagnostics.fatal(entity, f"file {path} does not exist", field=field_name)
    except (OSError, UnicodeDecodeError) as exc:
        diagnostics.fatal(entity, f"cannot read {path}: {exc}", field=field_name)
    return None


def _issue_dirs(source: Path, config: RootConfig, diagnostics: Diagnostics) -> list[Path]:
    content_dir = source / CONTENT_DIR
    if config.issues:
        dirs: list[Path] = []
        for index, ref in enumerate(config.issues):
            issue_dir = content_dir / ref.dir
            if not issue_dir.is_dir():
                diagnostics.fatal(f"issue[{index}]", f"directory {issue_dir} does not exist", field="dir")
                continue
            dirs.append(issue_dir)
        return dirs

    if not content_dir.is_dir():
        return []
    return sorted(path.parent for path in content_dir.glob(f"*/{ZINE_FILE}"))


def load_issue(issue_dir: Path, diagnostics: Diagnostics) -> LoadedIssue | None:
    entity = f"issue:{issue_dir.name}"
    data = _read_toml(issue_dir / ZINE_FILE, entity, diagnostics)
    if data is None:
        return None
    config = _validate(IssueConfig, data, entity, diagnostics)
    if config is None:
        return None

    issue = LoadedIssue(dir_name=issue_dir.name, dir=issue_dir, config=config)

    intro_path = issue_dir / INTRO_FILE
    if intro_path.is_file():
        issue.intro = _read_text(intro_path, entity, diagnostics, "intro")

    for index, article in enumerate(config.articles):
        article_entity = f"{entity}/article[{index}]"
        source = issue_dir / article.file
        markdown = _read_text(source, article_entity, diagnostics, "file")
        if markdown is None:
            continue
        loaded = LoadedArticle(config=article, source=source, markdown=markdown)
        for locale, translation in article.i18n.items():
            translated_source = issue_dir / translation.file
            translated = _read_text(translated_source, article_entity, diagnostics, f"i18n.{locale}.file")
            if translated is not None:
                loaded.translations.append(LoadedTranslation(locale, translation, translated_source, translated))
        issue.articles.append(loaded)
    return issue


def load_pages(pages_dir: Path, diagnostics: Diagnostics) -> list[LoadedPage]:
    if not pages_dir.is_dir():
        return []
    pages: list[LoadedPage] = []
    for path in sorted(pages_dir.rglob("*.md")):
        relative = PurePosixPath(path.relative_to(pages_dir).as_posix())
        markdown = _read_text(path, f"page:{relative}", diagnostics, "file")
        if markdown is not None:
            pages.append(LoadedPage(relative=relative, source=path, markdown=markdown))
    return pages


def load_source(source: Path) -> SourceTree:
    """Read the root config, every issue, every page and the referenced files."""
    source = source.expanduser().resolve()
    tree = SourceTree(root=source)
    diagnostics = tree.diagnostics

    if not source.is_dir():
        diagnostics.fatal("site", f"source directory {source} does not exist")
        return tree

    data = _read_toml(source / ZINE_FILE, "site", diagnostics)
    if data is None:
        return tree
    tree.config = _validate(RootConfig, data, "site", diagnostics)
    if tree.config is None:
        return tree

    footer = tree.config.theme.footer_template
    if footer:
        tree.footer_html = _read_text(source / footer, "theme", diagnostics, "footer-template")

    for issue_dir in _issue_dirs(source, tree.config, diagnostics):
        issue = load_issue(issue_dir, diagnostics)
        if issue is not None:
            tree.issues.append(issue)

    tree.pages = load_pages(source / PAGES_DIR, diagnostics)
    logger.debug(
        "Loaded %d issue(s) and %d page(s) from %s", len(tree.issues), len(tree.pages), source
    )
    return tree
