"""API middleware: CORS, compression, security headers, request logging, error handling.

# ─── MIDDLEWARE EXECUTION ORDER ────────────────────────────────────────
#
# Starlette middleware is a stack (LIFO: last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)     # added 1st → innermost
#     app.add_middleware(SecurityHeadersMiddleware)   # added 2nd
#     app.add_middleware(RequestLoggingMiddleware)    # added 3rd
#     configure_cors(app)                             # added 4th
#     configure_compression(app)                      # added 5th → outermost
#
#   Request flow:
#     Client → GZip → CORS → RequestLogging → SecurityHeaders
#            → ErrorHandling → route handler
#
# So RequestLoggingMiddleware sees the *final* status code, including
# 500s produced by ErrorHandlingMiddleware, and those 500s still carry
# the security headers.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from fm4keys.api.schemas import EndpointNotFoundResponse, ErrorResponse
from fm4keys.utils.errors import KeyServerError
from fm4keys.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

AVAILABLE_ENDPOINTS = {
    "root": "/",
    "programKeys": "/api/program-keys",
    "stats": "/api/stats",
    "health": "/health",
    "apiDocs": "/api-docs",
}

_QUIET_PATHS = frozenset({"/health"})


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware.  Defaults to ``["*"]``: the API is public and read-only."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Compression
# ---------------------------------------------------------------------------


def configure_compression(app: FastAPI, *, minimum_size: int = 1000) -> None:
    """Gzip responses larger than ``minimum_size`` bytes (the full key list grows unbounded)."""
    app.add_middleware(GZipMiddleware, minimum_size=minimum_size)


# ---------------------------------------------------------------------------
# Security headers
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add conservative security headers to every response.

    No Content-Security-Policy is set: the Swagger UI at ``/api-docs``
    loads its assets from a CDN.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each API request once it has been answered.

    Health checks are logged at debug level; server errors at warning.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        started = time.perf_counter()
        status = 500

        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            if status >= 500:
                log = _logger.warning
            elif path in _QUIET_PATHS:
                log = _logger.debug
            else:
                log = _logger.info
            log(
                "http_request",
                method=request.method,
                path=path,
                status=status,
                client=request.client.host if request.client else None,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert leaked ``KeyServerError`` subclasses into a generic 500 body.

    Details are logged server-side only; the client sees
    ``{"success": false, "error": "Internal server error"}``.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except KeyServerError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                source=exc.source_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(error="Internal server error")
            return JSONResponse(status_code=500, content=body.model_dump())


def register_exception_handlers(app: FastAPI) -> None:
    """Render ``HTTPException`` in the ``{success, error}`` envelope.

    Unknown paths get the endpoint directory instead of a bare 404.
    """

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            body = EndpointNotFoundResponse(
                error="Endpoint not found",
                available_endpoints=AVAILABLE_ENDPOINTS,
            )
            return JSONResponse(status_code=404, content=body.model_dump(by_alias=True))

        body = ErrorResponse(error=str(exc.detail))
        return JSONResponse(
            status_code=exc.status_code,
            content=body.model_dump(),
            headers=getattr(exc, "headers", None),
        )
