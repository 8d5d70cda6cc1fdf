"""Shared pytest fixtures for the fm4keys test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from fm4keys.interfaces.upstream_provider import IUpstreamProvider
from fm4keys.providers.store.sqlite_key_store import SQLiteKeyStore

# ---------------------------------------------------------------------------
# Sample upstream payloads
# ---------------------------------------------------------------------------

T0 = 1_700_000_000  # fixed "now" for store tests (2023-11-14 22:13:20 UTC)


@pytest.fixture
def live_payload() -> list[dict[str, Any]]:
    """A trimmed /live response: two broadcasts on air."""
    return [
        {
            "programKey": "4HB",
            "program": "Homebase",
            "title": "Homebase",
            "subtitle": "mit Lisa Schneider",
            "station": "fm4",
        },
        {
            "programKey": "4MO",
            "program": "Morning Show",
            "title": "Morning Show",
            "subtitle": None,
            "station": "fm4",
        },
    ]


@pytest.fixture
def broadcasts_payload() -> list[dict[str, Any]]:
    """A trimmed /broadcasts response: two days of listings."""
    return [
        {
            "day": 20240101,
            "broadcasts": [
                {"programKey": "4MO", "program": "Morning Show", "title": "Morning Show"},
                {"programKey": "4SOP", "program": "Soundpark", "title": "Soundpark"},
            ],
        },
        {
            "day": 20240102,
            "broadcasts": [
                {"programKey": "4LB", "program": "Liquid Radio", "title": "Liquid Radio"},
            ],
        },
    ]


# ---------------------------------------------------------------------------
# Clock and store fixtures
# ---------------------------------------------------------------------------


class FakeClock:
    """Controllable Unix-seconds clock for the key store."""

    def __init__(self, start: int = T0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def key_store(tmp_path: Path, clock: FakeClock) -> SQLiteKeyStore:
    """An initialized store on a temp database, closed after the test."""
    store = SQLiteKeyStore(db_path=tmp_path / "keys.db", clock=clock)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def mock_upstream(live_payload, broadcasts_payload) -> IUpstreamProvider:
    """Mock IUpstreamProvider returning the sample payloads.

    Override with ``mock_upstream.fetch_current.side_effect = ...`` for
    failure scenarios.
    """
    mock = MagicMock(spec=IUpstreamProvider)
    mock.get_provider_name.return_value = "mock-upstream"
    mock.fetch_current = AsyncMock(return_value=live_payload)
    mock.fetch_schedule = AsyncMock(return_value=broadcasts_payload)
    return mock
