"""HTTP Middleware — security headers, body parsing, and access logging.

Invariants:
    - Security headers never override a header the route already set
    - Body parse/size failures are stored on request.state.body_error, never raised here,
      so the error response still passes through the access log
    - One access log line per request: "METHOD URL STATUS"

Design Decisions:
    - Starlette BaseHTTPMiddleware: request.state is shared with the route via the scope
    - Parsed bodies land on request.state.body; routes read them via parsed_body()
"""

import json
from urllib.parse import parse_qs

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from userhub.core.contracts import LoggerLike
from userhub.core.errors import PayloadParseError, PayloadTooLargeError

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
METHODS_WITH_BODY = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Baseline policy: CSP, HSTS, no framing by other origins, no MIME sniffing
SECURITY_HEADERS: dict[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds baseline security headers to every response."""

    def __init__(self, app: ASGIApp, headers: dict[str, str] | None = None):
        super().__init__(app)
        self.headers = SECURITY_HEADERS if headers is None else headers

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


class BodyParserMiddleware(BaseHTTPMiddleware):
    """Parses JSON and URL-encoded request bodies onto request.state.body."""

    def __init__(self, app: ASGIApp, max_body_bytes: int = 100 * 1024):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        content_type = _media_type(request)
        if request.method in METHODS_WITH_BODY and content_type in (
            JSON_CONTENT_TYPE, FORM_CONTENT_TYPE,
        ):
            try:
                request.state.body = await self._read(request, content_type)
            except (PayloadParseError, PayloadTooLargeError) as e:
                request.state.body_error = e
        return await call_next(request)

    async def _read(self, request: Request, content_type: str) -> object:
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_bytes:
            raise PayloadTooLargeError(self.max_body_bytes)
        raw = await request.body()
        if len(raw) > self.max_body_bytes:
            raise PayloadTooLargeError(self.max_body_bytes)
        if not raw.strip():
            return {}
        try:
            text = raw.decode("utf-8")
            if content_type == JSON_CONTENT_TYPE:
                return json.loads(text)
            return _parse_form(text)
        except (UnicodeDecodeError, ValueError):
            raise PayloadParseError(content_type)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log: one info line per request, category "http"."""

    def __init__(self, app: ASGIApp, logger: LoggerLike):
        super().__init__(app)
        self.logger = logger

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        try:
            response = await call_next(request)
        except Exception:
            # no response yet; the exception filter outside us builds it
            self.logger.info(
                "http", f"{request.method} {url} -",
                method=request.method, path=url,
            )
            raise
        self.logger.info(
            "http", f"{request.method} {url} {response.status_code}",
            method=request.method, path=url, status_code=response.status_code,
        )
        return response


async def parsed_body(request: Request) -> object:
    """FastAPI dependency — body parsed by BodyParserMiddleware ({} when absent)."""
    error = getattr(request.state, "body_error", None)
    if error is not None:
        raise error
    return getattr(request.state, "body", {})


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";")[0].strip().lower()


def _parse_form(text: str) -> dict[str, str | list[str]]:
    parsed = parse_qs(text, keep_blank_values=True, strict_parsing=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}
