"""App — startup and shutdown sequencing for the UserHub HTTP server.

Invariants:
    - initialize() runs strictly in order: middleware → /users routes → exception
      filter → storage connect (awaited) → shutdown signal handler → listen
    - Nothing listens if storage.connect() fails; the error propagates unchanged
    - The exception filter middleware is registered last, so it wraps every other
      middleware (Starlette nests later registrations around earlier ones)
    - Endpoint errors are answered inside the middleware chain: handlers for domain,
      validation and HTTP errors, ExceptionFilterRoute (via server.state) for the rest
    - initialize() is one-shot: a second call raises AppAlreadyInitializedError
    - Shutdown runs at most once: disconnect storage, then stop the listener;
      repeated interrupts only log a warning
    - The App never exits the process; wait_closed() hands the exit status to the caller

Design Decisions:
    - Collaborators are passed in already built (userhub.main is the composition root)
    - HTTP server and signal registration are injectable seams, so tests drive the
      lifecycle with fakes instead of sockets and real signals
"""

import asyncio
import signal
from typing import Any, Callable

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from userhub import __version__
from userhub.api.exception_filter import ExceptionFilterMiddleware
from userhub.api.middleware import (
    BodyParserMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware,
)
from userhub.core.contracts import (
    ConfigProvider, ConnectableStorage, ExceptionFilterLike, HttpServer,
    HttpServerFactory, LoggerLike, RoutableController, SignalInstaller,
)
from userhub.core.domain_types import LifecycleState
from userhub.core.errors import AppAlreadyInitializedError, UserHubError
from userhub.infrastructure.http_server import UvicornServer

EXIT_SUCCESS = 0
USERS_PREFIX = "/users"
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_loop_signal_handler(sig: int, callback: Callable[[], Any]) -> None:
    """Route `sig` to `callback` on the running event loop."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(sig, callback)
    except NotImplementedError:
        # Windows event loops have no add_signal_handler
        signal.signal(sig, lambda *_: loop.call_soon_threadsafe(callback))


class App:
    """Owns the server handle and walks it through its one-shot lifecycle."""

    def __init__(
        self,
        logger_service: LoggerLike,
        config_service: ConfigProvider,
        user_controller: RoutableController,
        exception_filter: ExceptionFilterLike,
        storage: ConnectableStorage,
        *,
        http_server_factory: HttpServerFactory = UvicornServer,
        signal_installer: SignalInstaller = install_loop_signal_handler,
    ):
        self.logger_service = logger_service
        self.config_service = config_service
        self.user_controller = user_controller
        self.exception_filter = exception_filter
        self.storage = storage
        self._signal_installer = signal_installer

        self.server = FastAPI(title="UserHub API", version=__version__)
        self._server_config = self.config_service.get("server")
        self.port: int = self._server_config.port
        self._http_server: HttpServer = http_server_factory(
            self.server, self._server_config.host,
        )

        self._state = LifecycleState.CONSTRUCTED
        self._shutdown_requested = asyncio.Event()
        self._shutdown_task: asyncio.Task | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    async def initialize(self) -> None:
        """Register middleware, routes and error handling, connect storage, listen."""
        if self._state is not LifecycleState.CONSTRUCTED:
            raise AppAlreadyInitializedError(self._state.value)

        self._use_middleware()
        self._state = LifecycleState.MIDDLEWARE_REGISTERED

        self._use_routes()
        self._state = LifecycleState.ROUTES_REGISTERED

        self._use_exception_filters()
        self._state = LifecycleState.ERROR_HANDLER_REGISTERED

        await self._use_storage()
        self._state = LifecycleState.STORAGE_CONNECTED

        await self._listen()
        if self._shutdown_task is None:
            self._state = LifecycleState.LISTENING

    def request_shutdown(self) -> asyncio.Task:
        """Signal callback. Schedules shutdown once; later calls reuse that task."""
        if self._shutdown_task is not None:
            self.logger_service.warn(
                "app", "Shutdown already in progress, ignoring repeated interrupt",
            )
            return self._shutdown_task
        self._shutdown_task = asyncio.ensure_future(self._shutdown())
        self._shutdown_requested.set()
        return self._shutdown_task

    async def wait_closed(self) -> int:
        """Block until a requested shutdown finishes; return the process exit status."""
        await self._shutdown_requested.wait()
        await self._shutdown_task
        return EXIT_SUCCESS

    # ─── Startup steps ───────────────────────────────────────────

    def _use_middleware(self) -> None:
        self.server.add_middleware(SecurityHeadersMiddleware)
        self.server.add_middleware(
            BodyParserMiddleware, max_body_bytes=self._server_config.max_body_bytes,
        )
        self.server.add_middleware(RequestLoggingMiddleware, logger=self.logger_service)

    def _use_routes(self) -> None:
        self.server.include_router(self.user_controller.router, prefix=USERS_PREFIX)

    def _use_exception_filters(self) -> None:
        # read by ExceptionFilterRoute for errors the handlers below don't cover
        self.server.state.exception_filter = self.exception_filter
        catch = self.exception_filter.catch
        self.server.add_exception_handler(UserHubError, catch)
        self.server.add_exception_handler(RequestValidationError, catch)
        self.server.add_exception_handler(StarletteHTTPException, catch)
        self.server.add_middleware(
            ExceptionFilterMiddleware, exception_filter=self.exception_filter,
        )

    async def _use_storage(self) -> None:
        await self.storage.connect()
        for sig in SHUTDOWN_SIGNALS:
            self._signal_installer(sig, self.request_shutdown)

    async def _listen(self) -> None:
        await self._http_server.start(self.port)
        if self._shutdown_task is not None:
            # interrupted while binding; the listener was stopped before serving
            return
        self.logger_service.info(
            "app", f"Server started listening on port {self.port}", port=self.port,
        )

    # ─── Shutdown ────────────────────────────────────────────────

    async def _shutdown(self) -> None:
        self._state = LifecycleState.SHUTTING_DOWN
        self.logger_service.info("app", "Shutdown requested, disconnecting storage")
        try:
            await self.storage.disconnect()
        finally:
            self._http_server.stop()
            self._state = LifecycleState.EXITED
        self.logger_service.info("app", "Shutdown completed")
