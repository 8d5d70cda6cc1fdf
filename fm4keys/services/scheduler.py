"""Dual-interval scheduler for the two collection cycles.

# ─── DESIGN ────────────────────────────────────────────────────────────
#
# CollectionScheduler owns two long-lived asyncio tasks, one per cycle:
#
#   current   short period (default 60 s)   → collector.run(CURRENT)
#   schedule  long period  (default 300 s)  → collector.run(SCHEDULE)
#
# Each task runs a pass immediately at start-up, then one pass per
# period (measured start-to-start).  A pass that overruns its period
# delays the next one; passes of the same cycle never overlap.  The two
# tasks share nothing but the collector's store.
#
# stop() sets an asyncio.Event that both loops watch: no new pass starts
# once it is set.  A pass already in flight is never cancelled; stop()
# waits for it to merge and return, bounded by the upstream client's
# request timeout.  The store can be closed safely afterwards.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from fm4keys.models.collection import CycleName, CycleReport
from fm4keys.services.collector import ProgramKeyCollector
from fm4keys.utils.errors import ConfigurationError
from fm4keys.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_DEFAULT_CURRENT_INTERVAL = 60.0
_DEFAULT_SCHEDULE_INTERVAL = 300.0


class _CycleLoop:
    """Mutable bookkeeping for one cycle's repeating task."""

    def __init__(self, cycle: CycleName, interval: float) -> None:
        self.cycle = cycle
        self.interval = interval
        self.task: asyncio.Task[None] | None = None
        self.passes = 0
        self.last_report: CycleReport | None = None


class CollectionScheduler:
    """Drives the "current" and "schedule" cycles on independent timers.

    Parameters
    ----------
    collector:
        Executes the individual passes.
    current_interval:
        Seconds between the starts of two "current" passes.
    schedule_interval:
        Seconds between the starts of two "schedule" passes.
    """

    def __init__(
        self,
        collector: ProgramKeyCollector,
        current_interval: float = _DEFAULT_CURRENT_INTERVAL,
        schedule_interval: float = _DEFAULT_SCHEDULE_INTERVAL,
    ) -> None:
        for name, value in (
            ("current_interval", current_interval),
            ("schedule_interval", schedule_interval),
        ):
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}", source_name="scheduler")

        self._collector = collector
        self._loops = {
            CycleName.CURRENT: _CycleLoop(CycleName.CURRENT, current_interval),
            CycleName.SCHEDULE: _CycleLoop(CycleName.SCHEDULE, schedule_interval),
        }
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        return any(loop.task is not None and not loop.task.done() for loop in self._loops.values())

    # ─── Lifecycle ─────────────────────────────────────────────────────

    def start(self) -> None:
        """Spawn both cycle tasks.  Must be called from a running event loop."""
        if self.is_running:
            return

        stop_event = asyncio.Event()
        self._stop_event = stop_event
        for loop in self._loops.values():
            loop.task = asyncio.create_task(
                self._run_loop(loop, stop_event),
                name=f"collect-{loop.cycle.value}",
            )

        _logger.info(
            "scheduler_started",
            current_interval=self._loops[CycleName.CURRENT].interval,
            schedule_interval=self._loops[CycleName.SCHEDULE].interval,
        )

    async def stop(self) -> None:
        """Stop scheduling passes and wait for in-flight ones to finish.

        In-flight passes are never cancelled.  Safe to call more than once,
        and before :meth:`start`.
        """
        if self._stop_event is None:
            return
        self._stop_event.set()

        tasks = [loop.task for loop in self._loops.values() if loop.task is not None and not loop.task.done()]
        if tasks:
            _logger.info("scheduler_draining", cycles=len(tasks))
            await asyncio.gather(*tasks)

        for loop in self._loops.values():
            loop.task = None
        self._stop_event = None
        _logger.info("scheduler_stopped")

    def status(self) -> dict[str, Any]:
        """Per-cycle snapshot used by the health endpoint."""
        snapshot: dict[str, Any] = {"running": self.is_running}
        for cycle, loop in self._loops.items():
            report = loop.last_report
            snapshot[cycle.value] = {
                "phase": self._collector.phase(cycle).value,
                "interval_seconds": loop.interval,
                "passes": loop.passes,
                "last_run": report.finished_at.isoformat() if report else None,
                "last_ok": report.ok if report else None,
                "last_error": report.error if report else None,
            }
        return snapshot

    def last_report(self, cycle: CycleName) -> CycleReport | None:
        return self._loops[cycle].last_report

    # ─── Loop internals ────────────────────────────────────────────────

    async def _run_loop(self, loop: _CycleLoop, stop_event: asyncio.Event) -> None:
        clock = asyncio.get_running_loop()
        while not stop_event.is_set():
            started = clock.time()
            await self._run_pass(loop)

            remaining = loop.interval - (clock.time() - started)
            if remaining <= 0:
                await asyncio.sleep(0)
                continue
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass

    async def _run_pass(self, loop: _CycleLoop) -> None:
        try:
            report = await self._collector.run(loop.cycle)
        except Exception:
            # KeyServerError never reaches here; this only catches bugs.
            _logger.exception("cycle_crashed", cycle=loop.cycle.value)
            return
        loop.passes += 1
        loop.last_report = report
