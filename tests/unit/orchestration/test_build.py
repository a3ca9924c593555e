from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from conftest import SiteFactory, article
from defusedxml import ElementTree

from zine.config.settings import ZineSettings
from zine.core.diagnostics import Severity
from zine.markdown.engine import ExtensionEngine
from zine.orchestration.build import BuildOrchestrator, BuildStatus, output_file, run_build
from zine.orchestration.scope import BuildScope
from zine.preview.cache import LinkPreviewCache
from zine.preview.fetcher import PreviewFetcher

ATOM = "{http://www.w3.org/2005/Atom}"
SITEMAP = "{http://www.sitemaps.org/schemas/sitemap/0.9}"
PREVIEW_URL = "https://example.com/shared"


@pytest.fixture
def magazine(site: SiteFactory) -> SiteFactory:
    site.issue(
        "issue-1",
        number=1,
        title="First Issue",
        intro="Welcome to the **first** issue.\n",
        articles=[
            article("a.md", "Article A", "2024-01-05", author="alice", topic=["python"], publish=True),
            article("b.md", "Draft B", "2024-01-09", author="bob", publish=False),
            article("c.md", "Article C", "2024-01-07", author="alice", publish=True),
        ],
        bodies={"c.md": "# Article C\n\nSee `/issue-1/a` for background.\n"},
    )
    site.write("pages/about.md", "# About us\n\nWe write.\n")
    site.write("pages/blog/first.md", "# First post\n")
    site.write("static/logo.png", "not really a png")
    return site


@pytest.fixture
def dest(tmp_path: Path) -> Path:
    return tmp_path / "out"


def _read(dest: Path, url: str) -> str:
    return output_file(dest, url).read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_full_build_writes_every_output(magazine: SiteFactory, settings: ZineSettings, dest: Path):
    orchestrator = BuildOrchestrator(magazine.root, dest, settings=settings)

    report = await orchestrator.build()

    assert report.ok
    assert report.exit_code == 0
    assert report.articles_rendered == 3
    for url in (
        "/",
        "/issue-1",
        "/issue-1/a",
        "/issue-1/b",
        "/issue-1/c",
        "/about",
        "/blog",
        "/blog/first",
        "/@alice",
        "/@bob",
        "/authors",
        "/topic/python",
    ):
        assert output_file(dest, url).is_file(), url
    assert (dest / "feed.xml").is_file()
    assert (dest / "sitemap.xml").is_file()
    assert (dest / "static" / "logo.png").read_text() == "not really a png"
    assert (dest / "static" / "highlight.css").is_file()


@pytest.mark.asyncio
async def test_listings_hide_drafts_but_draft_pages_render(
    magazine: SiteFactory, settings: ZineSettings, dest: Path
):
    report = await BuildOrchestrator(magazine.root, dest, settings=settings).build()

    issue_html = _read(dest, "/issue-1")
    assert report.ok
    assert "Article A" in issue_html
    assert "Draft B" not in issue_html
    assert "<strong>first</strong>" in issue_html
    assert "Draft B" in _read(dest, "/issue-1/b")
    assert "Draft B" not in _read(dest, "/@bob")


@pytest.mark.asyncio
async def test_drafts_flag_lists_unpublished_articles(magazine: SiteFactory, settings: ZineSettings, dest: Path):
    await BuildOrchestrator(magazine.root, dest, settings=settings, drafts=True).build()

    assert "Draft B" in _read(dest, "/issue-1")
    assert "Draft B" in _read(dest, "/@bob")


@pytest.mark.asyncio
async def test_article_page_has_cross_link_and_author(magazine: SiteFactory, settings: ZineSettings, dest: Path):
    await BuildOrchestrator(magazine.root, dest, settings=settings).build()

    html = _read(dest, "/issue-1/c")
    assert 'class="inline-link" href="/issue-1/a"' in html
    assert 'href="/@alice"' in html
    assert "<title>Article C | Test Zine</title>" in html


@pytest.mark.asyncio
async def test_feed_lists_published_articles_newest_first(
    magazine: SiteFactory, settings: ZineSettings, dest: Path
):
    await BuildOrchestrator(magazine.root, dest, settings=settings).build()

    feed = ElementTree.fromstring((dest / "feed.xml").read_bytes())
    entries = feed.findall(f"{ATOM}entry")
    assert [entry.findtext(f"{ATOM}title") for entry in entries] == ["Article C", "Article A"]
    assert entries[0].findtext(f"{ATOM}id") == "https://zine.example/issue-1/c"
    assert entries[1].find(f"{ATOM}category").get("term") == "python"
    assert entries[1].findtext(f"{ATOM}author/{ATOM}name") == "Alice"


@pytest.mark.asyncio
async def test_sitemap_excludes_unpublished_articles(magazine: SiteFactory, settings: ZineSettings, dest: Path):
    await BuildOrchestrator(magazine.root, dest, settings=settings).build()

    sitemap = ElementTree.fromstring((dest / "sitemap.xml").read_bytes())
    locations = [url.findtext(f"{SITEMAP}loc") for url in sitemap.findall(f"{SITEMAP}url")]
    assert "https://zine.example/issue-1/a" in locations
    assert "https://zine.example/about" in locations
    assert "https://zine.example/issue-1/b" not in locations


@pytest.mark.asyncio
async def test_shared_preview_url_is_fetched_once_per_cache(
    respx_mock, site: SiteFactory, settings: ZineSettings, dest: Path, tmp_path: Path
):
    route = respx_mock.get(PREVIEW_URL).mock(
        return_value=httpx.Response(
            200, text="<html><head><title>Shared page</title></head></html>", headers={"content-type": "text/html"}
        )
    )
    body = f"# Title\n\n```urlpreview\n{PREVIEW_URL}\n```\n"
    site.issue(
        "issue-1",
        articles=[article(f"{name}.md", name.upper(), publish=True) for name in ("a", "b", "c")],
        bodies={f"{name}.md": body for name in ("a", "b", "c")},
    )
    cache = LinkPreviewCache(PreviewFetcher(timeout=2), cache_dir=tmp_path / "cache")
    orchestrator = BuildOrchestrator(site.root, dest, settings=settings, cache=cache)

    first = await orchestrator.build()
    second = await orchestrator.build()
    await cache.aclose()

    assert first.ok and second.ok
    assert route.call_count == 1
    assert first.preview_fetches == 1
    assert second.preview_fetches == 0
    assert "Shared page" in _read(dest, "/issue-1/b")


@pytest.mark.asyncio
async def test_timed_out_preview_is_a_warning_and_negative_cached(
    respx_mock, site: SiteFactory, settings: ZineSettings, dest: Path
):
    route = respx_mock.get(PREVIEW_URL).mock(side_effect=httpx.ConnectTimeout("slow"))
    site.issue(
        "issue-1",
        articles=[article("a.md", "A", publish=True)],
        bodies={"a.md": f"```urlpreview\n{PREVIEW_URL}\n```\n"},
    )
    cache = LinkPreviewCache(PreviewFetcher(timeout=2))

    orchestrator = BuildOrchestrator(site.root, dest, settings=settings, cache=cache)
    report = await orchestrator.build()
    again = await orchestrator.build()
    await cache.aclose()

    assert report.ok and again.ok
    assert any(problem.field == "urlpreview" for problem in report.warnings)
    assert route.call_count == 1
    assert again.preview_fetches == 0
    assert "url-preview-fallback" in _read(dest, "/issue-1/a")


@pytest.mark.asyncio
async def test_malformed_preview_urls_only_warn(respx_mock, site: SiteFactory, settings: ZineSettings, dest: Path):
    """It should keep building when a preview URL cannot even be parsed."""
    body = "```urlpreview\nhttps://[broken\n```\n\n```urlpreview\nhttps://exa\x01mple.com/\n```\n"
    site.issue(
        "issue-1",
        articles=[article("a.md", "A", publish=True), article("b.md", "B", publish=True)],
        bodies={"a.md": body, "b.md": body},
    )
    cache = LinkPreviewCache(PreviewFetcher(timeout=2))

    report = await BuildOrchestrator(site.root, dest, settings=settings, cache=cache).build()
    await cache.aclose()

    assert report.status is BuildStatus.SUCCESS, report.problems
    assert report.exit_code == 0
    assert all(problem.severity is Severity.WARNING for problem in report.problems)
    assert "url-preview-fallback" in _read(dest, "/issue-1/b")


@pytest.mark.asyncio
async def test_translations_render_with_language_switcher(site: SiteFactory, settings: ZineSettings, dest: Path):
    site.issue(
        "issue-1",
        articles=[
            article(
                "a.md",
                "Hello",
                author="alice",
                publish=True,
                i18n={"zh_CN": {"file": "a-zh.md", "title": "你好", "slug": "a-zh"}},
            )
        ],
    )

    report = await BuildOrchestrator(site.root, dest, settings=settings).build()

    assert report.ok, report.problems
    assert report.articles_rendered == 2
    original = _read(dest, "/issue-1/a")
    translated = _read(dest, "/issue-1/a-zh")
    assert '<a class="translation" href="/issue-1/a-zh" hreflang="zh-CN">简体中文</a>' in original
    assert '<a class="translation" href="/issue-1/a" hreflang="en">English</a>' in translated
    assert '<html lang="zh-CN">' in translated
    assert "你好" in translated
    assert "Body of a-zh.md." in translated
    sitemap = ElementTree.fromstring((dest / "sitemap.xml").read_bytes())
    locs = [url.findtext(f"{SITEMAP}loc") for url in sitemap.findall(f"{SITEMAP}url")]
    assert "https://zine.example/issue-1/a-zh" in locs
    assert "你好" not in _read(dest, "/issue-1")


@pytest.mark.asyncio
async def test_fatal_problem_writes_nothing(site: SiteFactory, settings: ZineSettings, dest: Path):
    site.issue("issue-1", articles=[article("a.md", "A", slug="x"), article("b.md", "B", slug="x")])

    report = await BuildOrchestrator(site.root, dest, settings=settings).build()

    assert report.status is BuildStatus.FAILED
    assert report.exit_code == 1
    assert [problem.field for problem in report.fatal] == ["slug"]
    assert not dest.exists()


@pytest.mark.asyncio
async def test_missing_author_still_builds(site: SiteFactory, settings: ZineSettings, dest: Path):
    site.issue("issue-1", articles=[article("a.md", "A", author="ghost", publish=True)])

    report = await BuildOrchestrator(site.root, dest, settings=settings).build()

    assert report.ok
    assert [problem.field for problem in report.warnings] == ["author"]
    assert "Anonymous" in _read(dest, "/issue-1/a")


@pytest.mark.asyncio
async def test_failing_article_does_not_stop_the_build(
    monkeypatch, magazine: SiteFactory, settings: ZineSettings, dest: Path
):
    original = ExtensionEngine.evaluate

    async def flaky(self, parsed, article=None):
        if article is not None and article.slug == "a":
            raise RuntimeError("boom")
        return await original(self, parsed, article)

    monkeypatch.setattr(ExtensionEngine, "evaluate", flaky)

    report = await BuildOrchestrator(magazine.root, dest, settings=settings).build()

    assert not report.ok
    assert report.articles_failed == 1
    assert report.articles_rendered == 2
    assert not output_file(dest, "/issue-1/a").exists()
    assert output_file(dest, "/issue-1/c").is_file()
    assert output_file(dest, "/").is_file()
    failure = report.fatal[0]
    assert failure.severity is Severity.FATAL
    assert failure.entity == "article:issue-1/a"
    assert failure.message == "boom"


@pytest.mark.asyncio
async def test_full_build_clears_stale_output(magazine: SiteFactory, settings: ZineSettings, dest: Path):
    dest.mkdir()
    (dest / "stale.html").write_text("old")

    await BuildOrchestrator(magazine.root, dest, settings=settings).build()

    assert not (dest / "stale.html").exists()


@pytest.mark.asyncio
async def test_scoped_build_rerenders_changed_and_linking_articles(
    magazine: SiteFactory, settings: ZineSettings, dest: Path
):
    orchestrator = BuildOrchestrator(magazine.root, dest, settings=settings)
    await orchestrator.build()
    changed = magazine.write("content/issue-1/a.md", "# Article A\n\nRewritten body.\n")

    report = await orchestrator.build(BuildScope.from_changes([changed], magazine.root))

    assert report.ok
    assert report.articles_rendered == 2
    assert "Rewritten body." in _read(dest, "/issue-1/a")
    assert "Rewritten body." in _read(dest, "/issue-1/c")
    assert output_file(dest, "/issue-1/b").is_file()


def test_run_build_without_previews(magazine: SiteFactory, settings: ZineSettings, dest: Path):
    report = run_build(magazine.root, dest, settings=settings, previews=False)

    assert report.ok
    assert report.preview_fetches == 0
    assert output_file(dest, "/issue-1/a").is_file()


def test_output_file_layout(tmp_path: Path):
    assert output_file(tmp_path, "/") == tmp_path / "index.html"
    assert output_file(tmp_path, "/issue-1/a") == tmp_path / "issue-1" / "a" / "index.html"
