"""Build orchestration: resolve, render every entity, then emit listings.

The sequence of one build:

1. Load the source tree and resolve the content graph. Fatal problems end the build
   before anything is written.
2. Render articles, issue intros and pages concurrently. A failing entity is recorded
   as a problem and does not stop the others.
3. After all of them finish, emit the listings (home, issues, authors, topics), the
   Atom feed and the sitemap, then copy static files and persist the preview cache.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from zine.config.loader import STATIC_DIR, load_source
from zine.config.settings import ZineSettings
from zine.core.diagnostics import Problem, Severity
from zine.core.graph import ContentGraph
from zine.core.resolver import resolve
from zine.core.types import Article, Issue, Page, Translation
from zine.exceptions import RenderError, ResolutionError
from zine.markdown.description import extract_description
from zine.markdown.engine import ExtensionEngine
from zine.markdown.nodes import RenderedDocument
from zine.orchestration.scope import BuildScope
from zine.preview.cache import LinkPreviewCache
from zine.rendering.feed import feed_to_xml_string, sitemap_to_xml_string
from zine.rendering.templates import TemplateLoader
from zine.utils.async_utils import run_async_safely

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BuildStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class BuildReport:
    status: BuildStatus = BuildStatus.SUCCESS
    problems: list[Problem] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    duration: float = 0.0
    articles_rendered: int = 0
    articles_failed: int = 0
    preview_fetches: int = 0

    @property
    def ok(self) -> bool:
        return self.status is BuildStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    @property
    def warnings(self) -> list[Problem]:
        return [problem for problem in self.problems if not problem.is_fatal]

    @property
    def fatal(self) -> list[Problem]:
        return [problem for problem in self.problems if problem.is_fatal]

    def fail(self, problem: Problem) -> None:
        self.problems.append(problem)
        self.status = BuildStatus.FAILED


def output_file(dest: Path, url: str) -> Path:
    """``/issue-1/hello`` becomes ``<dest>/issue-1/hello/index.html``."""
    relative = url.strip("/")
    return dest / relative / "index.html" if relative else dest / "index.html"


class BuildOrchestrator:
    """Drives one or more builds of a site.

    The orchestrator keeps no state between builds apart from the preview cache;
    every call to :meth:`build` reloads and re-resolves the whole source tree.
    """

    def __init__(
        self,
        source: Path,
        dest: Path | None = None,
        *,
        settings: ZineSettings | None = None,
        cache: LinkPreviewCache | None = None,
        drafts: bool | None = None,
        live_reload: str | None = None,
    ) -> None:
        self.source = source.expanduser().resolve()
        self.settings = settings or ZineSettings.load(self.source)
        self.dest = (dest or self.settings.abs_output_dir).expanduser().resolve()
        self.cache = cache
        self.drafts = self.settings.build.drafts if drafts is None else drafts
        self.live_reload = live_reload
        self.templates: TemplateLoader | None = None

    # -- helpers ---------------------------------------------------------------------

    def _context(self, graph: ContentGraph, **extra: Any) -> dict[str, Any]:
        return {
            "site": graph.site,
            "theme": graph.theme,
            "live_reload": self.live_reload,
            "highlight_css": graph.markdown.highlight_code,
            **extra,
        }

    def _write(self, report: BuildReport, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        report.written.append(path)

    def _render_page(self, report: BuildReport, graph: ContentGraph, url: str, template: str, **context: Any) -> None:
        assert self.templates is not None
        html = self.templates.render_template(template, **self._context(graph, **context))
        self._write(report, output_file(self.dest, url), html)

    async def _isolated(self, report: BuildReport, entity: str, work: Callable[[], Awaitable[T]]) -> T | None:
        try:
            return await work()
        except Exception as exc:
            error = exc if isinstance(exc, RenderError) else RenderError(entity, exc)
            logger.exception("Failed to render %s", entity)
            report.fail(Problem(Severity.FATAL, entity, str(error.original_exception)))
            return None

    def _prepare_dest(self, scope: BuildScope) -> None:
        if scope.full and self.dest.exists() and self.dest != self.source and self.dest not in self.source.parents:
            shutil.rmtree(self.dest)
        self.dest.mkdir(parents=True, exist_ok=True)

    # -- entities --------------------------------------------------------------------

    async def _render_article(
        self,
        report: BuildReport,
        graph: ContentGraph,
        engine: ExtensionEngine,
        article: Article,
        translations: list[Translation] | None = None,
    ) -> None:
        entity = f"article:{article.issue_slug}/{article.slug}"
        parsed = engine.parse(article.markdown, entity=entity)
        rendered = await engine.evaluate(parsed, article)
        report.problems.extend(rendered.problems)
        topics = [graph.topic(topic_id) for topic_id in article.topics]
        edit_url = None
        if graph.site.edit_url:
            edit_url = f"{graph.site.edit_url.rstrip('/')}/{article.source.relative_to(self.source).as_posix()}"
        self._render_page(
            report,
            graph,
            article.url,
            "article.jinja2",
            article=article,
            issue=graph.issue(article.issue_slug),
            html=rendered.html,
            toc=rendered.toc,
            comments=rendered.comments,
            topics=[topic for topic in topics if topic is not None],
            description=extract_description(article.markdown),
            edit_url=edit_url,
            translations=translations or [],
            page_locale=article.locale,
        )
        report.articles_rendered += 1

    async def _render_document(self, engine: ExtensionEngine, markdown: str, entity: str) -> RenderedDocument:
        return await engine.evaluate(engine.parse(markdown, entity=entity))

    async def _render_standalone_page(
        self, report: BuildReport, graph: ContentGraph, engine: ExtensionEngine, page: Page
    ) -> None:
        html = ""
        if not page.synthesized:
            rendered = await self._render_document(engine, page.markdown, f"page:{page.path}")
            report.problems.extend(rendered.problems)
            html = rendered.html
        children = [child for child in (graph.page(path) for path in page.children) if child is not None]
        self._render_page(
            report,
            graph,
            page.url,
            "page.jinja2",
            page=page,
            html=html,
            children=children,
            description=extract_description(page.markdown),
        )

    async def _render_intro(
        self, report: BuildReport, engine: ExtensionEngine, issue: Issue
    ) -> tuple[str, str]:
        if not issue.intro:
            return issue.slug, ""
        rendered = await self._render_document(engine, issue.intro, f"issue:{issue.slug}")
        report.problems.extend(rendered.problems)
        return issue.slug, rendered.html

    # -- listings --------------------------------------------------------------------

    def _listed(self, articles: list[Article]) -> list[Article]:
        return articles if self.drafts else [article for article in articles if article.publish]

    def _emit_listings(
        self, report: BuildReport, graph: ContentGraph, engine: ExtensionEngine, intros: dict[str, str]
    ) -> None:
        self._render_page(
            report,
            graph,
            "/",
            "index.jinja2",
            featured=graph.featured_articles(),
            issues=list(graph.issues),
            description=graph.site.description,
        )
        for issue in graph.issues:
            self._render_page(
                report,
                graph,
                issue.url,
                "issue.jinja2",
                issue=issue,
                intro_html=intros.get(issue.slug, ""),
                articles=self._listed(list(issue.articles)),
                description=extract_description(issue.intro or ""),
            )

        authors = []
        for author in graph.authors.values():
            articles = graph.articles_by_author(author.id, include_drafts=self.drafts)
            authors.append((author, len(articles)))
            self._render_page(
                report,
                graph,
                author.url,
                "author.jinja2",
                author=author,
                articles=articles,
                bio_html=engine.md.render(author.bio) if author.bio else "",
                description=extract_description(author.bio),
            )
        self._render_page(report, graph, "/authors", "author_list.jinja2", authors=authors)

        for topic in graph.topics.values():
            self._render_page(
                report,
                graph,
                topic.url,
                "topic.jinja2",
                topic=topic,
                articles=graph.articles_by_topic(topic.id),
                description=topic.description,
            )

    def _emit_feed(self, report: BuildReport, graph: ContentGraph) -> None:
        entries = graph.feed_entries(self.settings.build.feed_limit)
        summaries = {article.key: extract_description(article.markdown) for article in entries}
        self._write(report, self.dest / "feed.xml", feed_to_xml_string(graph.site, entries, summaries=summaries))

    def _emit_sitemap(self, report: BuildReport, graph: ContentGraph) -> None:
        urls: list[tuple[str, str | None]] = [("/", None)]
        for issue in graph.issues:
            urls.append((issue.url, None))
            urls.extend(
                (variant.url, variant.pub_date.isoformat())
                for article in issue.published_articles
                for variant in article.with_translations()
            )
        urls.extend((page.url, None) for page in graph.pages)
        urls.extend((author.url, None) for author in graph.authors.values())
        urls.append(("/authors", None))
        urls.extend((topic.url, None) for topic in graph.topics.values())
        self._write(report, self.dest / "sitemap.xml", sitemap_to_xml_string(graph.site, urls))

    def _copy_static(self, report: BuildReport, engine: ExtensionEngine, graph: ContentGraph) -> None:
        static_src = self.source / STATIC_DIR
        static_dest = self.dest / STATIC_DIR
        if static_src.is_dir():
            shutil.copytree(static_src, static_dest, dirs_exist_ok=True)
            report.written.append(static_dest)
        if graph.markdown.highlight_code:
            self._write(report, static_dest / "highlight.css", engine.stylesheet())

    # -- entry point -----------------------------------------------------------------

    async def build(self, scope: BuildScope | None = None) -> BuildReport:
        """Run one build and report its outcome. Never raises for content problems."""
        scope = scope or BuildScope.full_build()
        started = time.perf_counter()
        report = BuildReport()
        fetches_before = self.cache.fetch_count if self.cache else 0

        tree = load_source(self.source)
        try:
            graph = resolve(tree)
        except ResolutionError as exc:
            report.problems.extend(exc.problems)
            report.status = BuildStatus.FAILED
            report.duration = time.perf_counter() - started
            logger.error("%s", exc)
            return report
        report.problems.extend(graph.diagnostics)

        if self.cache is not None:
            self.cache.begin_build()
        self.templates = TemplateLoader(locale=graph.site.locale)
        engine = ExtensionEngine.for_graph(graph, self.cache)
        self._prepare_dest(scope)

        semaphore = asyncio.Semaphore(self.settings.build.concurrency)

        async def bounded(entity: str, work: Callable[[], Awaitable[T]]) -> T | None:
            async with semaphore:
                return await self._isolated(report, entity, work)

        articles = scope.articles_to_render(graph)
        pages = scope.pages_to_render(graph)
        logger.info("Rendering %d article(s) and %d page(s) into %s", len(articles), len(pages), self.dest)

        article_tasks = [
            bounded(
                f"article:{variant.issue_slug}/{variant.slug}",
                lambda variant=variant, links=graph.language_links(article): self._render_article(
                    report, graph, engine, variant, links
                ),
            )
            for article in articles
            for variant in article.with_translations()
        ]
        page_tasks = [
            bounded(f"page:{page.path}", lambda page=page: self._render_standalone_page(report, graph, engine, page))
            for page in pages
        ]
        intro_tasks = [
            bounded(f"issue:{issue.slug}", lambda issue=issue: self._render_intro(report, engine, issue))
            for issue in graph.issues
        ]
        results = await asyncio.gather(*article_tasks, *page_tasks, *intro_tasks)
        report.articles_failed = len(article_tasks) - report.articles_rendered

        intros = dict(result for result in results[len(article_tasks) + len(page_tasks) :] if result)
        for label, emit in (
            ("listings", lambda: self._emit_listings(report, graph, engine, intros)),
            ("feed", lambda: self._emit_feed(report, graph)),
            ("sitemap", lambda: self._emit_sitemap(report, graph)),
            ("static", lambda: self._copy_static(report, engine, graph)),
        ):
            try:
                emit()
            except Exception as exc:
                logger.exception("Failed to emit %s", label)
                report.fail(Problem(Severity.FATAL, label, str(exc)))

        if self.cache is not None:
            self.cache.persist()
            report.preview_fetches = self.cache.fetch_count - fetches_before

        report.duration = time.perf_counter() - started
        logger.info(
            "Build %s in %.2fs: %d article(s), %d file(s), %d warning(s)",
            report.status.value,
            report.duration,
            report.articles_rendered,
            len(report.written),
            len(report.warnings),
        )
        return report


def run_build(
    source: Path,
    dest: Path | None = None,
    *,
    settings: ZineSettings | None = None,
    drafts: bool | None = None,
    previews: bool | None = None,
) -> BuildReport:
    """Build a site once from synchronous code."""

    async def _run() -> BuildReport:
        active_settings = settings or ZineSettings.load(source.expanduser().resolve())
        cache = LinkPreviewCache.from_settings(
            active_settings.preview, active_settings.abs_cache_dir, enabled=previews
        )
        try:
            orchestrator = BuildOrchestrator(source, dest, settings=active_settings, cache=cache, drafts=drafts)
            return await orchestrator.build()
        finally:
            await cache.aclose()

    return run_async_safely(_run())
