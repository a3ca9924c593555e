"""Build orchestration: resolve the graph, render every entity, emit listings."""

from zine.orchestration.build import BuildOrchestrator, BuildReport, BuildStatus, run_build
from zine.orchestration.scope import BuildScope

__all__ = ["BuildOrchestrator", "BuildReport", "BuildScope", "BuildStatus", "run_build"]
