"""Build diagnostics: problems accumulated while loading and resolving content."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from zine.exceptions import ResolutionError

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    FATAL = "fatal"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class Problem:
    """One diagnostic, located by entity and field."""

    severity: Severity
    entity: str
    message: str
    field: str | None = None

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL

    def __str__(self) -> str:
        location = f"{self.entity}.{self.field}" if self.field else self.entity
        return f"[{self.severity.value}] {location}: {self.message}"


@dataclass(slots=True)
class Diagnostics:
    """Collects problems instead of aborting on the first one."""

    problems: list[Problem] = field(default_factory=list)

    def fatal(self, entity: str, message: str, field: str | None = None) -> None:
        problem = Problem(Severity.FATAL, entity, message, field)
        logger.error("%s", problem)
        self.problems.append(problem)

    def warn(self, entity: str, message: str, field: str | None = None) -> None:
        problem = Problem(Severity.WARNING, entity, message, field)
        logger.warning("%s", problem)
        self.problems.append(problem)

    def extend(self, problems: list[Problem]) -> None:
        self.problems.extend(problems)

    @property
    def has_fatal(self) -> bool:
        return any(problem.is_fatal for problem in self.problems)

    @property
    def warnings(self) -> list[Problem]:
        return [problem for problem in self.problems if not problem.is_fatal]

    def raise_if_fatal(self) -> None:
        if self.has_fatal:
            raise ResolutionError(self.problems)
