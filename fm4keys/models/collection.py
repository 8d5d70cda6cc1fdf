"""Models describing collection cycles and their outcomes.

A *cycle* is one independently scheduled collection loop ("current" or
"schedule").  Each pass of a cycle walks the phases below and produces a
frozen :class:`CycleReport`; failures are recorded on the report rather
than raised.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from fm4keys.models.program_key import KeyObservation
from fm4keys.utils.errors import ShapeWarning


class CycleName(str, Enum):  # noqa: UP042  StrEnum requires Python 3.11+
    """The two upstream resources the collector polls."""

    CURRENT = "current"     # what is on air right now (/live)
    SCHEDULE = "schedule"   # per-day broadcast listings (/broadcasts)


class CyclePhase(str, Enum):  # noqa: UP042
    """Phases of one collection pass.

        IDLE → FETCHING → EXTRACTING → MERGING → IDLE

    A failure in any phase returns the cycle straight to IDLE.
    """

    IDLE = "IDLE"
    FETCHING = "FETCHING"
    EXTRACTING = "EXTRACTING"
    MERGING = "MERGING"


class ExtractionResult(BaseModel):
    """Normalized observations pulled out of one upstream payload."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    observations: list[KeyObservation] = Field(default_factory=list)
    skipped: int = Field(default=0, ge=0, description="Entries dropped for lacking a usable key.")
    warning: ShapeWarning | None = None


class CycleReport(BaseModel):
    """Outcome of a single collection pass."""

    model_config = ConfigDict(frozen=True)

    cycle: CycleName
    started_at: datetime
    finished_at: datetime
    found: int = 0
    merged: int = 0
    skipped: int = 0
    error: str | None = None
    warning: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def duration_ms(self) -> float:
        return round((self.finished_at - self.started_at).total_seconds() * 1000, 2)
