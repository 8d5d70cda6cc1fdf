"""Utility modules for fm4keys.

- **errors** -- Exception hierarchy rooted at KeyServerError; each
  component raises its own subclass so the collector can contain failures
  per pass without broad ``except Exception`` blocks.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production. Events
  carry the service name, and the cycle name inside a collection pass.
"""

from fm4keys.utils.errors import (
    ConfigurationError,
    FetchError,
    KeyServerError,
    ShapeWarning,
    StoreError,
)
from fm4keys.utils.logging import configure_logging, cycle_context, get_logger

__all__ = [
    "ConfigurationError",
    "FetchError",
    "KeyServerError",
    "ShapeWarning",
    "StoreError",
    "configure_logging",
    "cycle_context",
    "get_logger",
]
