from __future__ import annotations

import importlib
from datetime import date
from pathlib import Path

import pytest
from typer.testing import CliRunner

from zine.cli.main import app
from zine.config.loader import load_source
from zine.core.resolver import resolve
from zine.exceptions import ScaffoldError
from zine.scaffolding import add_article, create_project

runner = CliRunner()


@pytest.fixture(autouse=True)
def git_author(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(importlib.import_module("zine.cli.main"), "git_user_name", lambda: "Ada_Lovelace")
    return "Ada_Lovelace"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    return create_project(tmp_path / "mag", "mag", author="Ada_Lovelace", today=date(2024, 5, 1))


def test_new_project_builds_a_resolvable_site(tmp_path: Path):
    result = runner.invoke(app, ["new", "mag", "--source", str(tmp_path)])

    assert result.exit_code == 0, result.output
    graph = resolve(load_source(tmp_path / "mag"))
    assert graph.site.name == "mag"
    assert graph.author("ada_lovelace").name == "Ada_Lovelace"
    first = graph.article("issue-1", "1-first")
    assert first.publish and first.featured
    assert first.authors == (graph.author("ada_lovelace"),)
    assert first.markdown == "Hello Zine\n"


def test_new_project_refuses_to_overwrite(project: Path):
    result = runner.invoke(app, ["new", "--source", str(project)])

    assert result.exit_code == 1
    assert "refusing to overwrite" in result.output


def test_new_issue_uses_next_number_by_default(project: Path):
    result = runner.invoke(app, ["new", "--issue", "--source", str(project)], input="\n\n\n")

    assert result.exit_code == 0, result.output
    graph = resolve(load_source(project))
    assert [(issue.slug, issue.number, issue.title) for issue in graph.issues] == [
        ("issue-1", 1, "Issue 1"),
        ("issue-2", 2, "Issue 2"),
    ]
    assert (project / "content" / "issue-2" / "1-first.md").is_file()


def test_new_article_is_appended_to_the_latest_issue(project: Path):
    result = runner.invoke(app, ["new", "--article", "--source", str(project)], input="\n\nA Fresh Take\n")

    assert result.exit_code == 0, result.output
    graph = resolve(load_source(project))
    added = graph.article("issue-1", "new-article")
    assert added.title == "A Fresh Take"
    assert added.author_ids == ("ada_lovelace",)
    assert (project / "content" / "issue-1" / "new-article.md").read_text() == "Hello Zine\n"


def test_new_article_for_unknown_issue_fails(project: Path):
    result = runner.invoke(app, ["new", "--article", "--source", str(project)], input="7\n\n\n")

    assert result.exit_code == 1
    assert "issue 7 not found" in result.output


def test_new_issue_outside_a_project_fails(tmp_path: Path):
    result = runner.invoke(app, ["new", "--issue", "--source", str(tmp_path)], input="\n\n\n")

    assert result.exit_code == 1
    assert "no readable root" in result.output


def test_issue_and_article_flags_are_exclusive(project: Path):
    result = runner.invoke(app, ["new", "--issue", "--article", "--source", str(project)])

    assert result.exit_code == 2


def test_add_article_never_overwrites_a_file(project: Path):
    (project / "content" / "issue-1" / "taken.md").write_text("mine", encoding="utf-8")

    with pytest.raises(ScaffoldError):
        add_article(project, 1, "taken.md", "Taken")

    assert (project / "content" / "issue-1" / "taken.md").read_text() == "mine"
    assert "taken.md" not in (project / "content" / "issue-1" / "zine.toml").read_text()
