"""HTTP Listener — uvicorn server embedded in the App's event loop.

Invariants:
    - start() returns once the socket is bound, or quietly when stop() came first;
      it raises if serving ended on its own before binding
    - Signal handling belongs to the App; the embedded server installs none
    - stop() does not drain in-flight requests

Design Decisions:
    - uvicorn.Server.serve() as a task on the running loop instead of uvicorn.run():
      the App keeps ownership of the loop and of shutdown ordering
    - uvicorn's own access log and Server header are disabled (RequestLoggingMiddleware,
      SecurityHeadersMiddleware cover them)
"""

import asyncio
import contextlib
import logging
from typing import Any

import uvicorn

logger = logging.getLogger(__name__)

STARTUP_POLL_SECONDS = 0.01


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to its owner."""

    def install_signal_handlers(self) -> None:
        return None

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class UvicornServer:
    """Runs one ASGI application with uvicorn on the current event loop."""

    def __init__(self, asgi_app: Any, host: str = "0.0.0.0"):
        self.asgi_app = asgi_app
        self.host = host
        self._server: _EmbeddedServer | None = None
        self._task: asyncio.Task | None = None
        self._stop_requested = False

    async def start(self, port: int) -> None:
        if self._stop_requested:
            logger.debug(f"Stop requested before start, not binding port {port}")
            return
        config = uvicorn.Config(
            self.asgi_app,
            host=self.host,
            port=port,
            lifespan="off",
            log_config=None,
            access_log=False,
            server_header=False,
        )
        self._server = _EmbeddedServer(config)
        self._task = asyncio.create_task(self._server.serve())
        while not self._server.started:
            if self._task.done():
                self._task.result()
                if self._server.should_exit:
                    return
                raise RuntimeError(f"HTTP server on {self.host}:{port} exited before listening")
            await asyncio.sleep(STARTUP_POLL_SECONDS)
        logger.debug(f"uvicorn bound to {self.host}:{port}")

    def stop(self) -> None:
        self._stop_requested = True
        if self._server is None:
            return
        self._server.should_exit = True
        self._server.force_exit = True

    async def wait_stopped(self) -> None:
        """Wait until serve() has returned and the socket is closed."""
        if self._task is not None:
            await self._task
