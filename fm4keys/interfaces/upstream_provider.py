"""Abstract base class for the upstream broadcast-data service.

Defines the contract for fetching the two upstream resources the
collector polls.  The concrete adapter (``FM4APIProvider``) talks to the
FM4 audio API over HTTP; tests inject mocks of this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IUpstreamProvider(ABC):
    """Contract for read-only access to the upstream JSON service.

    Implementations perform exactly one request per call and never retry;
    the scheduler's next tick is the retry.
    """

    @abstractmethod
    async def fetch_current(self) -> Any:
        """Fetch the "current" resource (what is on air now).

        Returns
        -------
        Any
            The decoded JSON body, normally a list of broadcast objects.

        Raises
        ------
        FetchError
            On network failure, timeout, non-2xx status or invalid JSON.
        """

    @abstractmethod
    async def fetch_schedule(self) -> Any:
        """Fetch the "schedule" resource (per-day broadcast listings).

        Returns
        -------
        Any
            The decoded JSON body, normally a list of day objects each
            holding a ``broadcasts`` list.

        Raises
        ------
        FetchError
            On network failure, timeout, non-2xx status or invalid JSON.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
