"""Exception Filter — classifies request-time errors into structured JSON responses.

Invariants:
    - UserHubError → its own http_status and to_response() envelope
    - RequestValidationError → 400 with field-level error details
    - Starlette HTTPException → its status code, code "HTTP_<status>"
    - Anything else → 500, never leaks internal details
    - 5xx logged at error level, 4xx at warning
    - Route errors become responses inside the middleware chain, so they still get
      security headers and an access log line with their status

Design Decisions:
    - One catch() entry point, used by three layers:
        1. FastAPI exception handlers (domain, validation, HTTP errors)
        2. ExceptionFilterRoute for any other error raised by an endpoint
        3. ExceptionFilterMiddleware (outermost) for errors escaping other middleware
    - ExceptionFilterRoute finds the filter on app.state at request time; routers are
      built before the App registers its filter
"""

from typing import Any, Callable, Coroutine

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from userhub.core.contracts import ExceptionFilterLike, LoggerLike
from userhub.core.errors import ErrorCategory, ErrorSeverity, UserHubError

# Handled by FastAPI's exception handlers; the route leaves them alone
HANDLER_ROUTED_ERRORS = (UserHubError, RequestValidationError, StarletteHTTPException)


class ExceptionFilter:
    """Global exception classifier."""

    def __init__(self, logger: LoggerLike):
        self.logger = logger

    async def catch(self, request: Request, exc: Exception) -> Response:
        if isinstance(exc, UserHubError):
            return self._handle_userhub_error(request, exc)
        if isinstance(exc, RequestValidationError):
            return self._handle_validation_error(request, exc)
        if isinstance(exc, StarletteHTTPException):
            return self._handle_http_exception(request, exc)
        return self._handle_unexpected(request, exc)

    def _handle_userhub_error(self, request: Request, exc: UserHubError) -> Response:
        exc.context.path = exc.context.path or request.url.path
        self._log(
            exc.http_status, f"UserHubError: {exc.message}",
            error_code=exc.code, path=request.url.path,
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    def _handle_validation_error(
        self, request: Request, exc: RequestValidationError,
    ) -> Response:
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
        fields = ", ".join(d["field"] for d in details)
        self.logger.warn(
            "exception", f"Invalid payload on {request.method} {request.url.path}: {fields}",
            error_code="VALIDATION_ERROR", path=request.url.path,
        )
        return self._envelope(
            status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION.value, ErrorSeverity.WARNING, details=details,
        )

    def _handle_http_exception(
        self, request: Request, exc: StarletteHTTPException,
    ) -> Response:
        code = f"HTTP_{exc.status_code}"
        self._log(
            exc.status_code, f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}",
            error_code=code, path=request.url.path,
        )
        severity = (
            ErrorSeverity.ERROR if exc.status_code >= 500 else ErrorSeverity.WARNING
        )
        return self._envelope(
            exc.status_code, code, str(exc.detail), "http", severity, headers=exc.headers,
        )

    def _handle_unexpected(self, request: Request, exc: Exception) -> Response:
        self.logger.error(
            "exception", f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True, error_code="INTERNAL_ERROR", path=request.url.path,
        )
        return self._envelope(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR",
            "An unexpected error occurred", ErrorCategory.INTERNAL.value,
            ErrorSeverity.CRITICAL,
        )

    def _envelope(
        self,
        status_code: int,
        code: str,
        message: str,
        category: str,
        severity: ErrorSeverity,
        *,
        details: list[dict] | None = None,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        error: dict[str, Any] = {
            "code": code,
            "message": message,
            "category": category,
            "severity": severity.value,
        }
        if details is not None:
            error["details"] = details
        return JSONResponse(
            status_code=status_code, content={"error": error}, headers=headers,
        )

    def _log(self, status_code: int, message: str, **fields) -> None:
        if status_code >= 500:
            self.logger.error("exception", message, **fields)
        else:
            self.logger.warn("exception", message, **fields)


class ExceptionFilterRoute(APIRoute):
    """APIRoute whose endpoint errors are turned into filter responses in place."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def filtered_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except HANDLER_ROUTED_ERRORS:
                raise
            except Exception as exc:
                exception_filter = getattr(request.app.state, "exception_filter", None)
                if exception_filter is None:
                    raise
                return await exception_filter.catch(request, exc)

        return filtered_handler


class ExceptionFilterMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: hands any escaping exception to the filter."""

    def __init__(self, app: ASGIApp, exception_filter: ExceptionFilterLike):
        super().__init__(app)
        self.exception_filter = exception_filter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await self.exception_filter.catch(request, exc)
