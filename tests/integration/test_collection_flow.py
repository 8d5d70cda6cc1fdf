"""End-to-end collection tests: upstream payloads through to stored rows.

Uses a real SQLiteKeyStore on a temp database with a fake clock; only the
upstream provider is mocked.
"""

from __future__ import annotations

import asyncio
import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from fm4keys.config.loader import RuntimeConfig
from fm4keys.services.collector import ProgramKeyCollector
from fm4keys.services.scheduler import CollectionScheduler
from fm4keys.utils.errors import FetchError


@pytest.fixture
def collector(mock_upstream, key_store) -> ProgramKeyCollector:
    return ProgramKeyCollector(upstream=mock_upstream, store=key_store)


class TestSequentialTicks:
    @pytest.mark.asyncio
    async def test_null_title_keeps_previous_and_advances_last_seen(
        self, collector, mock_upstream, key_store, clock
    ):
        first_tick = clock.now
        mock_upstream.fetch_current.return_value = [{"programKey": "4HB", "title": "Homebase"}]
        await collector.run_current()

        second_tick = clock.advance(60)
        mock_upstream.fetch_current.return_value = [{"programKey": "4HB", "title": None}]
        await collector.run_current()

        record = await key_store.get_by_key("4HB")
        assert record.title == "Homebase"
        assert record.first_seen == first_tick
        assert record.last_seen == second_tick
        assert record.updated_at == second_tick

    @pytest.mark.asyncio
    async def test_both_cycles_feed_one_row_per_key(self, collector, key_store):
        await collector.run_current()
        await collector.run_schedule()

        keys = [r.program_key for r in await key_store.get_all()]
        assert keys == ["4HB", "4LB", "4MO", "4SOP"]
        morning = await key_store.get_by_key("4MO")
        assert morning.description == "Morning Show"

    @pytest.mark.asyncio
    async def test_empty_string_from_upstream_does_not_erase(self, collector, mock_upstream, key_store, clock):
        mock_upstream.fetch_current.return_value = [{"programKey": "4HB", "subtitle": "mit Lisa"}]
        await collector.run_current()
        clock.advance(60)
        mock_upstream.fetch_current.return_value = [{"programKey": "4HB", "subtitle": ""}]
        await collector.run_current()

        assert (await key_store.get_by_key("4HB")).subtitle == "mit Lisa"


class TestCycleIsolation:
    @pytest.mark.asyncio
    async def test_current_failure_leaves_schedule_only_keys_alone(
        self, collector, mock_upstream, key_store, clock
    ):
        schedule_tick = clock.now
        await collector.run_schedule()

        clock.advance(60)
        mock_upstream.fetch_current.side_effect = FetchError("current", "HTTP 502 from upstream")
        failed = await collector.run_current()
        assert not failed.ok

        soundpark = await key_store.get_by_key("4SOP")
        assert soundpark.last_seen == schedule_tick

        next_tick = clock.advance(240)
        report = await collector.run_schedule()

        assert report.ok
        assert (await key_store.get_by_key("4SOP")).last_seen == next_tick

    @pytest.mark.asyncio
    async def test_scheduler_keeps_schedule_cycle_alive_while_current_fails(
        self, collector, mock_upstream, key_store
    ):
        mock_upstream.fetch_current.side_effect = FetchError("current", "connection refused")
        scheduler = CollectionScheduler(collector, current_interval=0.02, schedule_interval=0.03)
        scheduler.start()
        try:
            await asyncio.sleep(0.15)
            status = scheduler.status()
        finally:
            await scheduler.stop()

        assert status["current"]["last_ok"] is False
        assert status["schedule"]["last_ok"] is True
        assert status["schedule"]["passes"] >= 2
        assert len(await key_store.get_all()) == 3


class TestShutdown:
    @pytest.mark.asyncio
    async def test_inflight_fetch_is_merged_before_stop_returns(
        self, collector, mock_upstream, key_store
    ):
        async def _slow_fetch():
            await asyncio.sleep(0.3)
            return [{"programKey": "4HB", "title": "Homebase"}]

        mock_upstream.fetch_current.side_effect = _slow_fetch
        scheduler = CollectionScheduler(collector)
        scheduler.start()
        await asyncio.sleep(0.05)

        await scheduler.stop()

        record = await key_store.get_by_key("4HB")
        assert record is not None
        assert record.title == "Homebase"


class TestApplicationLifespan:
    def test_startup_collects_and_shutdown_closes(self, tmp_path, mock_upstream):
        from fm4keys.main import create_app

        runtime = RuntimeConfig(
            base_url="http://upstream.test",
            database_path=str(tmp_path / "app" / "keys.db"),
            current_interval=60,
            schedule_interval=300,
        )

        with patch("fm4keys.main.FM4APIProvider", return_value=mock_upstream):
            app = create_app(runtime)
            with TestClient(app) as client:
                total = 0
                deadline = time.monotonic() + 3.0
                while time.monotonic() < deadline:
                    total = client.get("/api/stats").json()["data"]["totalKeys"]
                    if total == 4:
                        break
                    time.sleep(0.05)

                health = client.get("/health").json()

            assert total == 4
            assert health["collector"]["running"] is True
            assert app.state.scheduler.is_running is False
            assert app.state.key_store.is_open is False
