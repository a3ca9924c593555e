"""Centralized exceptions for zine."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zine.core.diagnostics import Problem


class ZineError(Exception):
    """Base exception for all zine errors."""


class ConfigError(ZineError):
    """Raised when runtime settings cannot be loaded."""


class ResolutionError(ZineError):
    """Raised when the content graph has one or more fatal problems.

    Carries every problem found, not only the first one.
    """

    def __init__(self, problems: Sequence[Problem]) -> None:
        self.problems = list(problems)
        fatal = [problem for problem in self.problems if problem.is_fatal]
        super().__init__(f"Content resolution failed with {len(fatal)} fatal problem(s).")


class PreviewFetchError(ZineError):
    """Raised when the metadata of an external URL cannot be fetched."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to preview {url}: {reason}")


class RenderError(ZineError):
    """Raised when a single artifact fails to render."""

    def __init__(self, target: str, original_exception: Exception) -> None:
        self.target = target
        self.original_exception = original_exception
        super().__init__(f"Failed to render {target}: {original_exception}")


class ScaffoldError(ZineError):
    """Raised when ``zine new`` cannot create a project, issue or article."""
