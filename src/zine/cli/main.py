"""Main Typer application for zine."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from zine.cli.errorhandler import handle_cli_errors, problems_table
from zine.config.loader import load_source
from zine.config.settings import ZineSettings
from zine.core.resolver import resolve
from zine.exceptions import ScaffoldError
from zine.logging_setup import configure_logging, console
from zine.markdown.engine import ExtensionEngine
from zine.orchestration.build import run_build
from zine.preview.lint import lint_urls
from zine.scaffolding import (
    add_article,
    create_issue,
    create_project,
    git_user_name,
    latest_issue_number,
    next_issue_number,
)
from zine.serve.runner import serve_site
from zine.utils.async_utils import run_async_safely

app = typer.Typer(
    name="zine",
    help="Build a static magazine from a zine.toml content tree.",
    add_completion=False,
)

logger = logging.getLogger(__name__)

SourceArg = Annotated[
    Path,
    typer.Argument(help="Site root containing the root zine.toml", file_okay=False, resolve_path=True),
]
DebugOption = Annotated[bool, typer.Option("--debug", help="Show full tracebacks and debug logs")]


@app.callback()
def main() -> None:
    """Static magazine generator."""


def _setup(debug: bool) -> None:
    configure_logging("DEBUG" if debug else None)


@app.command()
def build(
    source: SourceArg = Path(),
    dest: Annotated[Path | None, typer.Option("--dest", "-d", help="Output directory")] = None,
    drafts: Annotated[bool, typer.Option("--drafts", help="List unpublished articles too")] = False,
    no_preview: Annotated[bool, typer.Option("--no-preview", help="Do not fetch link previews")] = False,
    debug: DebugOption = False,
) -> None:
    """Build the site once."""
    _setup(debug)
    with handle_cli_errors(debug=debug):
        settings = ZineSettings.load(source)
        report = run_build(
            source,
            dest,
            settings=settings,
            drafts=drafts or None,
            previews=False if no_preview else None,
        )

    if report.problems:
        console.print(problems_table(report.problems))
    if not report.ok:
        console.print(f"[bold red]Build failed[/bold red] with {len(report.fatal)} fatal problem(s).")
        raise typer.Exit(report.exit_code)

    console.print(
        f"[green]Built {report.articles_rendered} article(s) into {len(report.written)} file(s) "
        f"in {report.duration:.2f}s[/green] ({report.preview_fetches} preview fetch(es), "
        f"{len(report.warnings)} warning(s))"
    )


@app.command()
def serve(
    source: SourceArg = Path(),
    host: Annotated[str | None, typer.Option("--host", help="Interface to bind")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="HTTP port")] = None,
    no_preview: Annotated[bool, typer.Option("--no-preview", help="Do not fetch link previews")] = False,
    debug: DebugOption = False,
) -> None:
    """Serve the site locally, rebuilding and reloading on change."""
    _setup(debug)
    with handle_cli_errors(debug=debug):
        settings = ZineSettings.load(source)
        try:
            asyncio.run(serve_site(source, settings, host=host, port=port, previews=False if no_preview else None))
        except KeyboardInterrupt:
            console.print("Stopped.")


@app.command()
def lint(
    source: SourceArg = Path(),
    debug: DebugOption = False,
) -> None:
    """Check every urlpreview URL for 404s, redirects and server errors."""
    _setup(debug)
    with handle_cli_errors(debug=debug):
        settings = ZineSettings.load(source)
        graph = resolve(load_source(source))

    engine = ExtensionEngine.for_graph(graph)
    urls: list[str] = []
    for article in graph.iter_article_pages():
        urls.extend(engine.preview_urls(engine.parse(article.markdown)))

    statuses = run_async_safely(
        lint_urls(
            urls,
            timeout=settings.preview.timeout,
            user_agent=settings.preview.user_agent,
            max_concurrency=settings.preview.max_concurrency,
        )
    )
    failing = [status for status in statuses if not status.ok]
    if not failing:
        console.print(f"[green]All {len(statuses)} preview URL(s) are fine.[/green]")
        return

    table = Table(title="Broken preview URLs")
    table.add_column("URL", style="cyan")
    table.add_column("Condition", style="red")
    table.add_column("Status")
    table.add_column("Detail")
    for status in failing:
        table.add_row(
            status.url,
            status.condition.value,
            str(status.status_code or ""),
            status.detail or "",
        )
    console.print(table)
    raise typer.Exit(1)


@app.command()
def new(
    name: Annotated[str | None, typer.Argument(help="Directory of the new project, relative to --source")] = None,
    issue: Annotated[bool, typer.Option("--issue", "-i", help="Add an issue to the project in --source")] = False,
    article: Annotated[
        bool, typer.Option("--article", "-a", help="Add an article to an issue of the project in --source")
    ] = False,
    source: Annotated[
        Path, typer.Option("--source", "-s", help="Project root", file_okay=False, resolve_path=True)
    ] = Path(),
    debug: DebugOption = False,
) -> None:
    """Create a new zine project, issue or article."""
    _setup(debug)
    if issue and article:
        console.print("[bold red]--issue and --article cannot be combined.[/bold red]")
        raise typer.Exit(2)

    author = git_user_name()
    with handle_cli_errors(debug=debug):
        if issue:
            number = next_issue_number(source)
            dir_name = typer.prompt("Issue directory name", default=f"issue-{number}")
            number = typer.prompt("Issue number", default=number, type=int)
            title = typer.prompt("Issue title", default=f"Issue {number}")
            created = create_issue(source, dir_name, number, title, author=author)
        elif article:
            latest = latest_issue_number(source)
            if latest is None:
                raise ScaffoldError("the project has no issue yet, create one with `zine new --issue`")
            number = typer.prompt("Issue number of the article", default=latest, type=int)
            file = typer.prompt("Article file name", default="new-article.md")
            title = typer.prompt("Article title", default="New Article")
            created = add_article(source, number, file, title, author=author)
        else:
            target = source / name if name else source
            created = create_project(target, name or target.name, author=author)

    console.print(
        Panel(
            f"[bold green]Created {created}[/bold green]\n\n"
            "[bold]Next steps:[/bold]\n"
            "• Preview the magazine: [cyan]zine serve[/cyan]\n"
            "• Build it: [cyan]zine build[/cyan]",
            title="zine new",
            border_style="green",
        )
    )
