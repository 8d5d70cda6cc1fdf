"""Domain models for fm4keys."""

from fm4keys.models.collection import (
    CycleName,
    CyclePhase,
    CycleReport,
    ExtractionResult,
)
from fm4keys.models.program_key import CatalogStats, KeyObservation, ProgramKeyRecord

__all__ = [
    "CatalogStats",
    "CycleName",
    "CyclePhase",
    "CycleReport",
    "ExtractionResult",
    "KeyObservation",
    "ProgramKeyRecord",
]
