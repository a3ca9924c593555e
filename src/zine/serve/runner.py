"""``zine serve``: build into a temporary directory, serve it and rebuild on change."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from zine.config.settings import ZineSettings
from zine.orchestration.build import BuildOrchestrator
from zine.preview.cache import LinkPreviewCache
from zine.serve.livereload import LiveReloadHub
from zine.serve.server import DevServer
from zine.serve.watcher import RebuildWatcher

logger = logging.getLogger(__name__)


async def serve_site(
    source: Path,
    settings: ZineSettings,
    *,
    host: str | None = None,
    port: int | None = None,
    previews: bool | None = None,
) -> None:
    """Run the development server until cancelled."""
    host = host or settings.serve.host
    port = port or settings.serve.port
    dest = Path(tempfile.mkdtemp(prefix="zine-serve-"))

    hub = LiveReloadHub(host, settings.serve.ws_port)
    cache = LinkPreviewCache.from_settings(settings.preview, settings.abs_cache_dir, enabled=previews)
    server = DevServer(dest, host, port)
    orchestrator = BuildOrchestrator(
        source, dest, settings=settings, cache=cache, drafts=True, live_reload=hub.url
    )
    watcher = RebuildWatcher(
        orchestrator,
        hub,
        debounce=settings.serve.debounce,
        ignored=[dest, settings.abs_output_dir, settings.abs_cache_dir],
    )

    await hub.start()
    try:
        report = await orchestrator.build()
        for problem in report.problems:
            logger.warning("%s", problem)
        server.start()
        await watcher.run()
    finally:
        server.stop()
        await hub.stop()
        await cache.aclose()
        shutil.rmtree(dest, ignore_errors=True)
