"""Development mode: HTTP server, file watcher and live reload."""

from zine.serve.livereload import LiveReloadHub
from zine.serve.runner import serve_site
from zine.serve.server import DevServer
from zine.serve.watcher import RebuildWatcher

__all__ = ["DevServer", "LiveReloadHub", "RebuildWatcher", "serve_site"]
