from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from zine.config.loader import load_source
from zine.config.settings import PreviewSettings, ZineSettings
from zine.core.graph import ContentGraph
from zine.core.resolver import resolve

ROOT_TOML = """
[site]
name = "Test Zine"
url = "https://zine.example/"
description = "A magazine for tests"

[authors.alice]
name = "Alice"
bio = "Writes **things**."
editor = true

[authors.bob]
name = "Bob"
"""


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, list | tuple):
        return "[" + ", ".join(_toml_value(item) for item in value) + "]"
    return json.dumps(value)


class SiteFactory:
    """Writes a content tree under ``root`` for tests."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def root_config(self, content: str = ROOT_TOML) -> Path:
        return self.write("zine.toml", content)

    def issue(
        self,
        dir_name: str,
        *,
        number: int = 1,
        title: str | None = None,
        slug: str | None = None,
        articles: Iterable[Mapping[str, Any]] = (),
        intro: str | None = None,
        bodies: Mapping[str, str] | None = None,
    ) -> Path:
        """Write ``content/<dir_name>/zine.toml``; article files get a default body."""
        lines = [f"number = {number}", f"title = {json.dumps(title or dir_name)}"]
        if slug:
            lines.append(f"slug = {json.dumps(slug)}")
        bodies = dict(bodies or {})
        for article in articles:
            translations: Mapping[str, Mapping[str, Any]] = article.get("i18n", {})
            lines.append("")
            lines.append("[[article]]")
            lines.extend(f"{key} = {_toml_value(value)}" for key, value in article.items() if key != "i18n")
            for locale, translation in translations.items():
                lines.append(f"[article.i18n.{locale}]")
                lines.extend(f"{key} = {_toml_value(value)}" for key, value in translation.items())
            for entry in (article, *translations.values()):
                file_name = entry.get("file")
                if file_name and file_name not in bodies:
                    bodies[file_name] = f"# {entry.get('title', file_name)}\n\nBody of {file_name}.\n"
        path = self.write(f"content/{dir_name}/zine.toml", "\n".join(lines) + "\n")
        for file_name, body in bodies.items():
            self.write(f"content/{dir_name}/{file_name}", body)
        if intro is not None:
            self.write(f"content/{dir_name}/intro.md", intro)
        return path

    def graph(self) -> ContentGraph:
        return resolve(load_source(self.root))


def article(file: str, title: str, pub_date: str = "2024-01-01", **extra: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {"file": file, "title": title, "pub_date": date.fromisoformat(pub_date)}
    entry.update(extra)
    return entry


@pytest.fixture
def site(tmp_path: Path) -> SiteFactory:
    factory = SiteFactory(tmp_path / "site")
    factory.root.mkdir()
    factory.root_config()
    return factory


@pytest.fixture
def settings(site: SiteFactory, tmp_path: Path) -> ZineSettings:
    return ZineSettings(
        site_root=site.root,
        preview=PreviewSettings(cache_dir=tmp_path / "preview-cache", timeout=2),
    )
