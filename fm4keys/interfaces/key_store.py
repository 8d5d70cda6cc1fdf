"""Abstract base class for program key persistence.

The key store owns every write to the catalog.  All mutation goes through
:meth:`IKeyStore.merge`, which must be atomic and safe for concurrent
callers; the REST façade only uses the read methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from fm4keys.models.program_key import CatalogStats, KeyObservation, ProgramKeyRecord


class IKeyStore(ABC):
    """Contract for the program key catalog."""

    @abstractmethod
    async def initialize(self) -> None:
        """Open the backing store and ensure the schema.  Called at startup."""

    @abstractmethod
    async def close(self) -> None:
        """Release the backing store.  Later calls raise ``StoreError``."""

    @abstractmethod
    async def merge(
        self,
        program_key: str,
        description: str | None = None,
        title: str | None = None,
        subtitle: str | None = None,
    ) -> None:
        """Fold one observation of ``program_key`` into the catalog.

        Parameters
        ----------
        program_key:
            Non-empty, case-sensitive key.  An empty key raises ``ValueError``.
        description, title, subtitle:
            New metadata.  ``None`` never erases a stored value.

        Creates the row on first sight (``first_seen = last_seen =
        updated_at = now``); otherwise coalesces the metadata and moves
        ``last_seen`` and ``updated_at`` to now.
        """

    @abstractmethod
    async def merge_many(self, observations: Iterable[KeyObservation]) -> int:
        """Merge observations in order.  Returns how many were merged."""

    @abstractmethod
    async def get_all(self) -> list[ProgramKeyRecord]:
        """Return every record ordered by ``program_key`` ascending."""

    @abstractmethod
    async def get_by_key(self, program_key: str) -> ProgramKeyRecord | None:
        """Return one record, or ``None`` when the key is unknown."""

    @abstractmethod
    async def get_stats(self) -> CatalogStats:
        """Return total count, 24-hour recent count and latest ``updated_at``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
