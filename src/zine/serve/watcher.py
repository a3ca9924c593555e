"""File watcher that re-runs the build orchestrator on change.

watchdog delivers events on its own thread; they are handed to the event loop through
an :class:`asyncio.Queue`. Builds run one at a time: a change arriving while a build is
running cancels that build and starts a new one covering both change sets.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from zine.orchestration.build import BuildReport
from zine.orchestration.scope import BuildScope
from zine.serve.livereload import LiveReloadHub

logger = logging.getLogger(__name__)

IGNORED_NAMES = frozenset({".git", "__pycache__", ".DS_Store"})
WATCHED_EVENTS = frozenset({"created", "modified", "deleted", "moved"})


class Builder(Protocol):
    source: Path

    async def build(self, scope: BuildScope | None = None) -> BuildReport: ...


class ChangeHandler(FileSystemEventHandler):
    """Forwards relevant file events from the observer thread to the event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[Path],
        ignored: Iterable[Path] = (),
    ) -> None:
        self.loop = loop
        self.queue = queue
        self.ignored = tuple(path.resolve() for path in ignored)

    def is_ignored(self, path: Path) -> bool:
        if IGNORED_NAMES.intersection(path.parts) or path.name.endswith(("~", ".swp")):
            return True
        return any(path == ignored or ignored in path.parents for ignored in self.ignored)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in WATCHED_EVENTS:
            return
        raw_paths = [event.src_path]
        if event.event_type == "moved":
            raw_paths.append(event.dest_path)
        for raw in raw_paths:
            path = Path(os.fsdecode(raw)).resolve()
            if not self.is_ignored(path):
                self.loop.call_soon_threadsafe(self.queue.put_nowait, path)


class RebuildWatcher:
    def __init__(
        self,
        orchestrator: Builder,
        hub: LiveReloadHub | None = None,
        *,
        debounce: float = 0.3,
        ignored: Iterable[Path] = (),
    ) -> None:
        self.orchestrator = orchestrator
        self.hub = hub
        self.debounce = debounce
        self.ignored = list(ignored)
        self.queue: asyncio.Queue[Path] = asyncio.Queue()
        self.builds = 0
        self._task: asyncio.Task[BuildReport | None] | None = None
        self._scope: BuildScope | None = None

    async def next_changes(self) -> set[Path]:
        """Wait for a change, then keep collecting until ``debounce`` seconds pass quietly."""
        changes = {await self.queue.get()}
        while True:
            try:
                changes.add(await asyncio.wait_for(self.queue.get(), timeout=self.debounce))
            except TimeoutError:
                return changes

    async def _build(self, scope: BuildScope) -> BuildReport | None:
        try:
            report = await self.orchestrator.build(scope)
        except Exception:
            logger.exception("Rebuild crashed, waiting for the next change")
            return None
        self.builds += 1
        if report.ok:
            logger.info("Rebuilt in %.2fs", report.duration)
        else:
            for problem in report.fatal:
                logger.error("%s", problem)
        if self.hub is not None:
            self.hub.broadcast()
        return report

    async def submit(self, scope: BuildScope) -> asyncio.Task[BuildReport | None]:
        """Start a build for ``scope``, superseding the one in progress if any."""
        if self._task is not None and not self._task.done():
            logger.info("Change detected during build, restarting")
            self._task.cancel()
            await asyncio.wait([self._task])
            if self._scope is not None:
                scope = scope.union(self._scope)
        self._scope = scope
        self._task = asyncio.create_task(self._build(scope))
        return self._task

    async def wait_idle(self) -> BuildReport | None:
        if self._task is None:
            return None
        await asyncio.wait([self._task])
        if self._task.cancelled():
            return None
        return self._task.result()

    async def run(self) -> None:
        """Watch the source tree until cancelled."""
        loop = asyncio.get_running_loop()
        handler = ChangeHandler(loop, self.queue, self.ignored)
        observer = Observer()
        observer.schedule(handler, str(self.orchestrator.source), recursive=True)
        observer.start()
        logger.info("Watching %s for changes", self.orchestrator.source)
        try:
            while True:
                changes = await self.next_changes()
                logger.debug("Changed: %s", ", ".join(sorted(str(path) for path in changes)))
                await self.submit(BuildScope.from_changes(changes, self.orchestrator.source))
        finally:
            if self._task is not None:
                self._task.cancel()
            observer.stop()
            observer.join()
