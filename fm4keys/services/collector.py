"""Runs single collection passes: fetch → extract → merge.

One :class:`ProgramKeyCollector` serves both cycles.  Each pass walks the
:class:`~fm4keys.models.collection.CyclePhase` state machine and always
ends back in ``IDLE``.  Application errors (``FetchError``, ``StoreError``)
and shape warnings are contained here: they are logged with the cycle name
and recorded on the returned :class:`CycleReport`, never raised, so a
failing cycle cannot disturb the other one.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import structlog

from fm4keys.interfaces.key_store import IKeyStore
from fm4keys.interfaces.upstream_provider import IUpstreamProvider
from fm4keys.models.collection import CycleName, CyclePhase, CycleReport, ExtractionResult
from fm4keys.services.extractor import extract_from_current, extract_from_schedule
from fm4keys.utils.errors import KeyServerError
from fm4keys.utils.logging import cycle_context, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

FetchFn = Callable[[], Awaitable[Any]]
ExtractFn = Callable[[Any], ExtractionResult]


class ProgramKeyCollector:
    """Fetches upstream payloads and merges the keys they contain.

    Parameters
    ----------
    upstream:
        Source of the "current" and "schedule" payloads.
    store:
        Catalog that receives every extracted observation.
    """

    def __init__(self, upstream: IUpstreamProvider, store: IKeyStore) -> None:
        self._upstream = upstream
        self._store = store
        self._steps: dict[CycleName, tuple[FetchFn, ExtractFn]] = {
            CycleName.CURRENT: (upstream.fetch_current, extract_from_current),
            CycleName.SCHEDULE: (upstream.fetch_schedule, extract_from_schedule),
        }
        self._phases: dict[CycleName, CyclePhase] = {cycle: CyclePhase.IDLE for cycle in CycleName}

    def phase(self, cycle: CycleName) -> CyclePhase:
        """Return the phase ``cycle`` is currently in."""
        return self._phases[cycle]

    async def run_current(self) -> CycleReport:
        return await self.run(CycleName.CURRENT)

    async def run_schedule(self) -> CycleReport:
        return await self.run(CycleName.SCHEDULE)

    async def run(self, cycle: CycleName) -> CycleReport:
        """Execute one pass of ``cycle`` and report what happened."""
        with cycle_context(cycle.value):
            return await self._run(cycle)

    async def _run(self, cycle: CycleName) -> CycleReport:
        fetch, extract = self._steps[cycle]
        started_at = datetime.now(timezone.utc)
        found = merged = skipped = 0
        error: str | None = None
        warning: str | None = None

        try:
            self._phases[cycle] = CyclePhase.FETCHING
            payload = await fetch()

            self._phases[cycle] = CyclePhase.EXTRACTING
            result = extract(payload)
            found = len(result.observations)
            skipped = result.skipped

            if result.warning is not None:
                warning = str(result.warning)
                _logger.warning("upstream_shape_unexpected", warning=warning)
            else:
                self._phases[cycle] = CyclePhase.MERGING
                merged = await self._store.merge_many(result.observations)
        except KeyServerError as exc:
            error = str(exc)
            _logger.error(
                "cycle_failed",
                phase=self._phases[cycle].value,
                error_type=type(exc).__name__,
                error=error,
            )
        finally:
            self._phases[cycle] = CyclePhase.IDLE

        report = CycleReport(
            cycle=cycle,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            found=found,
            merged=merged,
            skipped=skipped,
            error=error,
            warning=warning,
        )
        if report.ok:
            _logger.info(
                "cycle_completed",
                found=found,
                merged=merged,
                skipped=skipped,
                duration_ms=report.duration_ms,
            )
        return report
