"""Pure functions that pull program keys out of upstream payloads.

The upstream API is untrusted and its shape drifts between releases, so
both extractors degrade instead of failing: a payload of the wrong type
yields an empty result carrying a :class:`ShapeWarning`, and individual
entries without a usable key are skipped.

Shapes handled::

    current   [ {"programKey": "4HB", "program": "...", "title": "...", ...}, ... ]
    schedule  [ {"day": 20240101, "broadcasts": [ <broadcast>, ... ]}, ... ]
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fm4keys.models.collection import CycleName, ExtractionResult
from fm4keys.models.program_key import KeyObservation
from fm4keys.utils.errors import ShapeWarning

_KEY_FIELD = "programKey"
_DESCRIPTION_FIELD = "program"
_TITLE_FIELD = "title"
_SUBTITLE_FIELD = "subtitle"
_BROADCASTS_FIELD = "broadcasts"


def extract_from_current(payload: Any) -> ExtractionResult:
    """Extract observations from the "current" (live) payload.

    Args:
        payload: Decoded JSON; expected to be a list of broadcast objects.

    Returns:
        One observation per broadcast that carries a non-empty key, in
        payload order.  A non-list payload gives an empty result with a
        warning attached.
    """
    if not isinstance(payload, list):
        return _shape_mismatch(CycleName.CURRENT, payload)

    observations, skipped = _collect(payload)
    return ExtractionResult(observations=observations, skipped=skipped)


def extract_from_schedule(payload: Any) -> ExtractionResult:
    """Extract observations from the "schedule" (broadcasts) payload.

    Args:
        payload: Decoded JSON; expected to be a list of day objects, each
                 optionally holding a ``broadcasts`` list.

    Returns:
        Observations from every day's broadcasts, flattened in order.  Days
        that are not objects or lack a ``broadcasts`` list are passed over.
    """
    if not isinstance(payload, list):
        return _shape_mismatch(CycleName.SCHEDULE, payload)

    observations: list[KeyObservation] = []
    skipped = 0
    for day in payload:
        if not isinstance(day, Mapping):
            continue
        broadcasts = day.get(_BROADCASTS_FIELD)
        if not isinstance(broadcasts, list):
            continue
        found, dropped = _collect(broadcasts)
        observations.extend(found)
        skipped += dropped

    return ExtractionResult(observations=observations, skipped=skipped)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _collect(broadcasts: list[Any]) -> tuple[list[KeyObservation], int]:
    observations: list[KeyObservation] = []
    skipped = 0
    for broadcast in broadcasts:
        observation = _to_observation(broadcast)
        if observation is None:
            skipped += 1
        else:
            observations.append(observation)
    return observations, skipped


def _to_observation(broadcast: Any) -> KeyObservation | None:
    if not isinstance(broadcast, Mapping):
        return None
    key = broadcast.get(_KEY_FIELD)
    # Numeric or other non-string keys are skipped, never coerced to text.
    if not isinstance(key, str) or not key:
        return None
    return KeyObservation(
        program_key=key,
        description=_text(broadcast.get(_DESCRIPTION_FIELD)),
        title=_text(broadcast.get(_TITLE_FIELD)),
        subtitle=_text(broadcast.get(_SUBTITLE_FIELD)),
    )


def _text(value: Any) -> str | None:
    """Empty strings and non-string values count as missing."""
    if isinstance(value, str) and value:
        return value
    return None


def _shape_mismatch(resource: CycleName, payload: Any) -> ExtractionResult:
    warning = ShapeWarning(
        f"Expected a JSON array, got {type(payload).__name__}",
        source_name=resource.value,
    )
    return ExtractionResult(warning=warning)
