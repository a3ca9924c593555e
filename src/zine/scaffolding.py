"""Scaffolding for ``zine new``: projects, issues and articles.

Issue and article tables are rendered from small TOML templates and written next to
the existing content. Nothing that already exists is overwritten.
"""

from __future__ import annotations

import json
import logging
import subprocess
from datetime import date
from pathlib import Path

from jinja2 import Environment

from zine.config.loader import CONTENT_DIR, ZINE_FILE, LoadedIssue, load_source
from zine.exceptions import ScaffoldError

logger = logging.getLogger(__name__)

FIRST_ARTICLE = "1-first.md"
ARTICLE_BODY = "Hello Zine\n"

PROJECT_TEMPLATE = """\
[site]
url = "http://localhost"
name = {{ name | toml }}
description = ""
{% if author %}
[authors.{{ author | lower | toml }}]
name = {{ author | toml }}
{% endif %}"""

ISSUE_TEMPLATE = """\
slug = {{ slug | toml }}
number = {{ number }}
title = {{ title | toml }}
{{ article }}"""

ARTICLE_TEMPLATE = """
[[article]]
file = {{ file | toml }}
title = {{ title | toml }}
{% if author %}author = {{ author | lower | toml }}
{% endif %}pub_date = {{ pub_date }}
publish = true
featured = true
"""

_env = Environment(autoescape=False, keep_trailing_newline=True)
# JSON strings are valid TOML basic strings.
_env.filters["toml"] = json.dumps


def git_user_name() -> str:
    """``git config user.name`` with spaces replaced, or ``""`` without git."""
    try:
        result = subprocess.run(
            ["git", "config", "user.name"],  # noqa: S607
            capture_output=True,
            text=True,
            check=True,
            timeout=2,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("No git user name: %s", exc)
        return ""
    return result.stdout.strip().replace(" ", "_")


def _article_table(file: str, title: str, author: str, pub_date: date) -> str:
    return _env.from_string(ARTICLE_TEMPLATE).render(
        file=file, title=title, author=author, pub_date=pub_date.isoformat()
    )


def _write_new(path: Path, content: str) -> None:
    if path.exists():
        raise ScaffoldError(f"refusing to overwrite existing {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Created %s", path)


def create_issue(
    source: Path,
    dir_name: str,
    number: int,
    title: str,
    *,
    author: str = "",
    today: date | None = None,
) -> Path:
    """Create ``content/<dir_name>`` with its ``zine.toml`` and a first article."""
    issue_dir = source / CONTENT_DIR / dir_name
    if (issue_dir / ZINE_FILE).exists():
        raise ScaffoldError(f"refusing to overwrite existing {issue_dir / ZINE_FILE}")

    article = _article_table(FIRST_ARTICLE, "First article", author, today or date.today())
    _write_new(
        issue_dir / ZINE_FILE,
        _env.from_string(ISSUE_TEMPLATE).render(slug=dir_name, number=number, title=title, article=article),
    )
    _write_new(issue_dir / FIRST_ARTICLE, ARTICLE_BODY)
    return issue_dir


def create_project(source: Path, name: str, *, author: str = "", today: date | None = None) -> Path:
    """Create a root ``zine.toml`` and the first issue under ``source``."""
    source.mkdir(parents=True, exist_ok=True)
    _write_new(source / ZINE_FILE, _env.from_string(PROJECT_TEMPLATE).render(name=name, author=author))
    create_issue(source, "issue-1", 1, "Issue 1", author=author, today=today)
    return source


def _existing_issues(source: Path) -> list[LoadedIssue]:
    tree = load_source(source)
    if tree.config is None:
        raise ScaffoldError(f"no readable root {ZINE_FILE} in {source}, create a project with `zine new`")
    return tree.issues


def next_issue_number(source: Path) -> int:
    issues = _existing_issues(source)
    return max((issue.config.number for issue in issues), default=0) + 1


def latest_issue_number(source: Path) -> int | None:
    issues = _existing_issues(source)
    return max((issue.config.number for issue in issues), default=None)


def add_article(
    source: Path,
    issue_number: int,
    file: str,
    title: str,
    *,
    author: str = "",
    today: date | None = None,
) -> Path:
    """Write a new article file and append its ``[[article]]`` table to the issue.

    Raises:
        ScaffoldError: if no issue has ``issue_number`` or the file already exists.

    """
    issue = next((issue for issue in _existing_issues(source) if issue.config.number == issue_number), None)
    if issue is None:
        raise ScaffoldError(f"issue {issue_number} not found")

    article_path = issue.dir / file
    _write_new(article_path, ARTICLE_BODY)
    with (issue.dir / ZINE_FILE).open("a", encoding="utf-8") as f:
        f.write(_article_table(file, title, author, today or date.today()))
    return article_path
