"""Structured logging for the key server, built on structlog.

Every line goes through one processor chain and then to a renderer picked
per environment: coloured console output for development, or one JSON
object per line when ``APP_ENV=production`` (or ``json_output=True``).

Each event is stamped with ``service="fm4keys"``.  Work done inside
:func:`cycle_context` also carries ``cycle=current`` or ``cycle=schedule``.
That covers the upstream fetch, the extraction and the store merge, so
one grep isolates a single cycle even though both share the provider and
the store.

Standard-library ``logging`` goes through the same formatter, so uvicorn's
error log and aiosqlite render like our own events.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

SERVICE_NAME = "fm4keys"

# httpx logs every upstream fetch and uvicorn.access every request, both at
# INFO; the collector and RequestLoggingMiddleware already report those.
_QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def add_service_name(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Processor: tag the event with :data:`SERVICE_NAME` unless already set."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


@contextmanager
def cycle_context(cycle: str) -> Iterator[None]:
    """Bind ``cycle`` to every event logged by this task until the block exits.

    Context variables are per-task, so the two cycle loops running side by
    side never see each other's binding.
    """
    with structlog.contextvars.bound_contextvars(cycle=cycle):
        yield


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and the stdlib bridge.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output. When False, JSON is used only when
                     ``APP_ENV`` is ``production``.

    Returns:
        A configured structlog BoundLogger.
    """
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    # contextvars first so explicit keyword arguments win over bound ones.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_name,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.add_logger_name],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound with ``logger_name=name``, configuring defaults first if needed."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
