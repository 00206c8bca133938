"""Boundary Protocols — contracts between the App orchestrator and its collaborators.

Invariants:
    - The orchestrator only talks to collaborators through these Protocol types
    - Implementations are constructed by the composition root (userhub.main) and
      passed in already built

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no base class
    - Async in Protocol where the implementation may do IO (storage, listener start)
"""

from typing import Any, Callable, Protocol

from fastapi import APIRouter, Request
from starlette.responses import Response


class LoggerLike(Protocol):
    """Category-labelled log sink."""
    def debug(self, category: str, message: str, **fields: Any) -> None: ...
    def info(self, category: str, message: str, **fields: Any) -> None: ...
    def warn(self, category: str, message: str, **fields: Any) -> None: ...
    def error(
        self, category: str, message: str, *, exc_info: bool = False, **fields: Any,
    ) -> None: ...


class ConfigProvider(Protocol):
    """Section lookup over application settings."""
    def get(self, section: str) -> Any: ...


class ConnectableStorage(Protocol):
    """Storage lifecycle, called once each per process."""
    async def connect(self) -> None: ...
    async def disconnect(self) -> None: ...


class RoutableController(Protocol):
    """Resource controller exposing a mountable handler group."""
    router: APIRouter


class ExceptionFilterLike(Protocol):
    """Turns any exception surfaced during a request into a response."""
    async def catch(self, request: Request, exc: Exception) -> Response: ...


class HttpServer(Protocol):
    """Listener bound to one ASGI application."""
    async def start(self, port: int) -> None: ...
    def stop(self) -> None: ...


HttpServerFactory = Callable[[Any, str], HttpServer]
SignalInstaller = Callable[[int, Callable[[], Any]], None]
