"""CLI error handling utilities."""

from collections.abc import Generator, Iterable
from contextlib import contextmanager

import typer
from rich.table import Table

from zine.core.diagnostics import Problem
from zine.exceptions import ConfigError, PreviewFetchError, RenderError, ResolutionError, ZineError
from zine.logging_setup import console


def problems_table(problems: Iterable[Problem], title: str = "Problems") -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Severity", style="bold")
    table.add_column("Entity", style="cyan")
    table.add_column("Field", style="magenta")
    table.add_column("Message")
    for problem in problems:
        style = "red" if problem.is_fatal else "yellow"
        table.add_row(
            f"[{style}]{problem.severity.value}[/{style}]",
            problem.entity,
            problem.field or "",
            problem.message,
        )
    return table


@contextmanager
def handle_cli_errors(*, debug: bool = False) -> Generator[None, None, None]:
    """Context manager to handle CLI errors gracefully.

    Args:
        debug: If True, re-raise with the full traceback. If False, print a
            user-friendly error and exit with status 1.

    """
    try:
        yield
    except (KeyboardInterrupt, SystemExit, typer.Exit):
        raise
    except ResolutionError as e:
        if debug:
            raise
        console.print(problems_table(e.problems))
        console.print(f"[bold red]Build failed:[/bold red] {e}")
        raise typer.Exit(1) from e
    except ConfigError as e:
        if debug:
            raise
        console.print(f"[bold red]Invalid Configuration:[/bold red] {e}")
        raise typer.Exit(1) from e
    except RenderError as e:
        if debug:
            raise
        console.print(f"[bold red]Render Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    except PreviewFetchError as e:
        if debug:
            raise
        console.print(f"[bold red]Preview Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    except ZineError as e:
        if debug:
            raise
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from e
