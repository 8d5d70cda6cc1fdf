"""Custom exception hierarchy for fm4keys.

All application exceptions inherit from :class:`KeyServerError`, which
carries an optional ``source_name`` so error handlers can identify which
collaborator (e.g. "current", "schedule", "sqlite") caused the failure.

The hierarchy is organized by component:

    KeyServerError  (base -- catch-all for any fm4keys error)
    +-- FetchError          (upstream HTTP request failed)
    +-- ShapeWarning        (upstream payload not in the expected shape)
    +-- StoreError          (key store persistence failure)
    +-- ConfigurationError  (startup / invalid config)

``FetchError``, ``ShapeWarning`` and ``StoreError`` never cross a collector
pass boundary: the collector logs them and the next scheduled pass proceeds
normally.
"""

from __future__ import annotations


class KeyServerError(Exception):
    """Base exception for all fm4keys errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``source_name``.  ``__str__`` prefixes the source in brackets for
    structured log output, e.g. ``[current] HTTP 503``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        source_name: str | None = None,
    ) -> None:
        self._message = message
        self._source_name = source_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def source_name(self) -> str | None:
        return self._source_name

    def __str__(self) -> str:
        if self._source_name:
            return f"[{self._source_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Upstream errors
# ---------------------------------------------------------------------------

class FetchError(KeyServerError):
    """Raised when an upstream resource cannot be fetched.

    Covers network failures, timeouts, non-2xx responses and bodies that
    are not valid JSON.  ``resource`` names the upstream resource
    ("current" or "schedule") and ``cause`` holds the underlying exception.
    """

    def __init__(
        self,
        resource: str,
        message: str = "Upstream request failed",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message=message, source_name=resource)
        self._cause = cause

    @property
    def resource(self) -> str:
        return self._source_name or ""

    @property
    def cause(self) -> BaseException | None:
        return self._cause


class ShapeWarning(KeyServerError, UserWarning):
    """Signals an upstream payload that does not have the expected shape.

    Non-fatal: the extractor returns it alongside an empty result instead
    of raising it, and the collector logs it.
    """

    def __init__(
        self,
        message: str = "Upstream payload has an unexpected shape",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


# ---------------------------------------------------------------------------
# Persistence / configuration errors
# ---------------------------------------------------------------------------

class StoreError(KeyServerError):
    """Raised when a key store read or merge fails, or the store is closed."""

    def __init__(
        self,
        message: str = "Key store operation failed",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class ConfigurationError(KeyServerError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)
