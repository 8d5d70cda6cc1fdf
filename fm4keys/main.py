"""fm4keys FastAPI application entry point.

Wires the upstream provider, key store, collector and scheduler together,
and serves the read-only catalog API.  Loads configuration from ``.env``
and ``config/config.yaml`` and configures structured logging.

Lifecycle (FastAPI lifespan):

    startup   build components → store.initialize() → scheduler.start()
    shutdown  scheduler.stop() → store.close() → http_client.aclose()

The scheduler is always stopped before the store closes, so no merge can
hit a closed connection.  uvicorn translates SIGINT/SIGTERM into the
shutdown half.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from fm4keys.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_compression,
    configure_cors,
    register_exception_handlers,
)
from fm4keys.api.routes import router as api_router
from fm4keys.api.routes import system_router
from fm4keys.config.loader import RuntimeConfig, build_runtime_config, load_config
from fm4keys.config.settings import Settings
from fm4keys.providers.store.sqlite_key_store import SQLiteKeyStore
from fm4keys.providers.upstream.fm4_api_provider import FM4APIProvider
from fm4keys.services.collector import ProgramKeyCollector
from fm4keys.services.scheduler import CollectionScheduler
from fm4keys.utils.logging import configure_logging, get_logger

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component construction
# ---------------------------------------------------------------------------


def build_components(runtime: RuntimeConfig) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components to be stored on ``app.state``.
    The store is not opened here; the caller owns its lifecycle.
    """
    http_client = httpx.AsyncClient(timeout=runtime.request_timeout, follow_redirects=True)

    upstream = FM4APIProvider(
        http_client=http_client,
        base_url=runtime.base_url,
        current_path=runtime.current_path,
        schedule_path=runtime.schedule_path,
        timeout=runtime.request_timeout,
        user_agent=runtime.user_agent,
    )
    key_store = SQLiteKeyStore(db_path=runtime.database_path)
    collector = ProgramKeyCollector(upstream=upstream, store=key_store)
    scheduler = CollectionScheduler(
        collector=collector,
        current_interval=runtime.current_interval,
        schedule_interval=runtime.schedule_interval,
    )

    return {
        "http_client": http_client,
        "upstream": upstream,
        "key_store": key_store,
        "collector": collector,
        "scheduler": scheduler,
    }


def _load_runtime_config() -> RuntimeConfig:
    return build_runtime_config(load_config(settings=settings))


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Open the store and start collecting on startup; unwind in reverse on shutdown."""
    runtime: RuntimeConfig = application.state.runtime_config
    components = build_components(runtime)

    for key, value in components.items():
        setattr(application.state, key, value)
    application.state.started_at = time.monotonic()

    key_store: SQLiteKeyStore = components["key_store"]
    scheduler: CollectionScheduler = components["scheduler"]
    http_client: httpx.AsyncClient = components["http_client"]

    try:
        await key_store.initialize()
        scheduler.start()
        _logger.info(
            "app_startup",
            version=__version__,
            environment=settings.app_env,
            upstream=runtime.base_url,
            database=runtime.database_path,
        )
        yield
    finally:
        await scheduler.stop()
        await key_store.close()
        await http_client.aclose()
        _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(runtime: RuntimeConfig | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    runtime = runtime or _load_runtime_config()

    application = FastAPI(
        title="FM4 Program Key Discovery API",
        version=__version__,
        description="API for discovering and retrieving FM4 radio program keys",
        docs_url="/api-docs",
        redoc_url=None,
        lifespan=_lifespan,
    )
    application.state.runtime_config = runtime

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=runtime.cors_origins)
    configure_compression(application)
    register_exception_handlers(application)

    # -- Routes --
    application.include_router(system_router)
    application.include_router(api_router)

    return application


app = create_app()


def main() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "fm4keys.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    main()
