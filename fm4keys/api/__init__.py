"""fm4keys API layer — routes, schemas, and middleware."""

from fm4keys.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_compression,
    configure_cors,
    register_exception_handlers,
)
from fm4keys.api.routes import router, system_router
from fm4keys.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProgramKeyListResponse,
    ProgramKeyResponse,
    StatsResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "configure_compression",
    "configure_cors",
    "register_exception_handlers",
    "router",
    "system_router",
    "ErrorResponse",
    "HealthResponse",
    "ProgramKeyListResponse",
    "ProgramKeyResponse",
    "StatsResponse",
]
