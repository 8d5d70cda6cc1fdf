"""Pydantic v2 models for catalogued program keys.

All models use frozen config (immutable).  ``ProgramKeyRecord`` mirrors one
row of the ``program_keys`` table; ``KeyObservation`` is one sighting of a
key in an upstream payload, before it is merged into the store.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class KeyObservation(BaseModel):
    """A program key and its metadata as seen in one upstream broadcast."""

    model_config = ConfigDict(frozen=True)

    program_key: str = Field(min_length=1, description="Case-sensitive program key, e.g. '4HB'.")
    description: str | None = Field(default=None, description="Program name ('program' upstream).")
    title: str | None = None
    subtitle: str | None = None


class ProgramKeyRecord(BaseModel):
    """The durable catalog entry for one program key.

    ``first_seen`` is written once; ``last_seen`` and ``updated_at`` move
    forward on every merge.  All timestamps are integer Unix seconds.
    """

    model_config = ConfigDict(frozen=True)

    program_key: str
    description: str | None = None
    title: str | None = None
    subtitle: str | None = None
    first_seen: int
    last_seen: int
    updated_at: int

    @classmethod
    def from_row(cls, row: Any) -> ProgramKeyRecord:
        """Build a record from an ``aiosqlite.Row`` (or any mapping)."""
        return cls(**dict(row))


class CatalogStats(BaseModel):
    """Aggregate view of the catalog.

    Serialized with the camelCase names the read API exposes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_keys: int = Field(alias="totalKeys")
    recent_keys: int = Field(alias="recentKeys", description="Keys seen in the last 24 hours.")
    last_update: int | None = Field(default=None, alias="lastUpdate")
