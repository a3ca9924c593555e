"""Websocket hub telling open browser tabs to reload."""

from __future__ import annotations

import logging

from websockets.asyncio.server import Server, ServerConnection, broadcast, serve

logger = logging.getLogger(__name__)

RELOAD_MESSAGE = "reload"


class LiveReloadHub:
    """Tracks connected browsers and pushes ``reload`` frames to them.

    Delivery is best effort: clients that disconnected or are too slow miss the message.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 3001) -> None:
        self.host = host
        self.port = port
        self.clients: set[ServerConnection] = set()
        self._server: Server | None = None

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}/"

    async def _handler(self, connection: ServerConnection) -> None:
        self.clients.add(connection)
        logger.debug("Live-reload client connected (%d total)", len(self.clients))
        try:
            await connection.wait_closed()
        finally:
            self.clients.discard(connection)
            logger.debug("Live-reload client disconnected (%d total)", len(self.clients))

    async def start(self) -> None:
        self._server = await serve(self._handler, self.host, self.port)
        if self.port == 0:
            self.port = next(iter(self._server.sockets)).getsockname()[1]
        logger.info("Live reload listening on %s", self.url)

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None

    def broadcast(self, message: str = RELOAD_MESSAGE) -> int:
        """Send ``message`` to every connected client; returns how many were targeted."""
        clients = list(self.clients)
        if clients:
            broadcast(clients, message)
        return len(clients)
