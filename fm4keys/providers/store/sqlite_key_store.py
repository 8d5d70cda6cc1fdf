"""SQLite-backed program key store.

Persists the catalog to a local SQLite database at ``data/keys.db``.
Uses ``aiosqlite`` for async I/O over a single long-lived connection that
is opened in :meth:`SQLiteKeyStore.initialize` and released in
:meth:`SQLiteKeyStore.close`.

Merge contract
--------------
Each merge runs inside one ``BEGIN IMMEDIATE`` transaction as an explicit
two-branch upsert:

* key absent  -> insert with ``first_seen = last_seen = updated_at = now``
* key present -> coalesce description/title/subtitle (a ``None`` never
  replaces a stored value), move ``last_seen``/``updated_at`` to now,
  leave ``first_seen`` alone.

Writers are serialized by an ``asyncio.Lock`` on top of SQLite's write
lock, so the two collection cycles can merge the same key concurrently
without losing updates.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from pathlib import Path

import aiosqlite

from fm4keys.interfaces.key_store import IKeyStore
from fm4keys.models.program_key import CatalogStats, KeyObservation, ProgramKeyRecord
from fm4keys.utils.errors import StoreError
from fm4keys.utils.logging import get_logger

logger = get_logger(__name__)

_DEFAULT_DB_PATH = Path("data/keys.db")
_MEMORY_DB = ":memory:"
_RECENT_WINDOW_SECONDS = 86_400

_PRAGMAS = [
    "PRAGMA journal_mode = WAL;",
    "PRAGMA synchronous = NORMAL;",
    "PRAGMA cache_size = -64000;",  # 64 MB
]

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS program_keys (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    program_key  TEXT    NOT NULL UNIQUE,
    description  TEXT,
    title        TEXT,
    subtitle     TEXT,
    first_seen   INTEGER NOT NULL,
    last_seen    INTEGER NOT NULL,
    updated_at   INTEGER NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_program_key ON program_keys(program_key);",
    "CREATE INDEX IF NOT EXISTS idx_last_seen ON program_keys(last_seen);",
]

_COLUMNS = "program_key, description, title, subtitle, first_seen, last_seen, updated_at"

_SELECT_FOR_MERGE_SQL = """\
SELECT description, title, subtitle, last_seen, updated_at
FROM program_keys
WHERE program_key = ?;
"""

_INSERT_SQL = f"""\
INSERT INTO program_keys ({_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_UPDATE_SQL = """\
UPDATE program_keys
SET description = ?,
    title       = ?,
    subtitle    = ?,
    last_seen   = ?,
    updated_at  = ?
WHERE program_key = ?;
"""

_SELECT_ALL_SQL = f"SELECT {_COLUMNS} FROM program_keys ORDER BY program_key ASC;"

_SELECT_ONE_SQL = f"SELECT {_COLUMNS} FROM program_keys WHERE program_key = ?;"

_STATS_SQL = """\
SELECT COUNT(*)                                       AS total_keys,
       SUM(CASE WHEN last_seen > ? THEN 1 ELSE 0 END) AS recent_keys,
       MAX(updated_at)                                AS last_update
FROM program_keys;
"""


def _unix_now() -> int:
    return int(time.time())


class SQLiteKeyStore(IKeyStore):
    """SQLite-backed program key catalog.

    Parameters
    ----------
    db_path:
        Database file, or ``":memory:"`` for a private in-memory catalog.
    clock:
        Returns the current time as Unix seconds.  Injected so tests can
        control ``first_seen``/``last_seen``.
    busy_timeout:
        Seconds SQLite waits on a locked database before failing.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        clock: Callable[[], float] = _unix_now,
        busy_timeout: float = 5.0,
    ) -> None:
        self._db_path = str(db_path)
        self._clock = clock
        self._busy_timeout = busy_timeout
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Open the connection and create the table and indices if needed."""
        if self._conn is not None:
            return

        if self._db_path != _MEMORY_DB:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            # isolation_level=None: transactions are opened explicitly in _write().
            conn = await aiosqlite.connect(
                self._db_path, timeout=self._busy_timeout, isolation_level=None
            )
            conn.row_factory = aiosqlite.Row
            for pragma in _PRAGMAS:
                await conn.execute(pragma)
            await conn.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await conn.execute(idx_sql)
        except aiosqlite.Error as exc:
            raise StoreError(f"Could not open key store: {exc}", source_name="sqlite") from exc

        self._conn = conn
        logger.info("program_key_store_initialized", path=self._db_path)

    async def close(self) -> None:
        async with self._lock:
            if self._conn is None:
                return
            conn, self._conn = self._conn, None
            try:
                await conn.close()
            except aiosqlite.Error as exc:
                raise StoreError(f"Could not close key store: {exc}", source_name="sqlite") from exc
        logger.info("program_key_store_closed", path=self._db_path)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def merge(
        self,
        program_key: str,
        description: str | None = None,
        title: str | None = None,
        subtitle: str | None = None,
    ) -> None:
        observation = _as_observation(program_key, description, title, subtitle)
        await self._write([observation])

    async def merge_many(self, observations: Iterable[KeyObservation]) -> int:
        """Merge a batch in one transaction; either all or none are applied."""
        batch = list(observations)
        if not batch:
            return 0
        await self._write(batch)
        return len(batch)

    async def _write(self, observations: list[KeyObservation]) -> None:
        now = int(self._clock())
        async with self._lock:
            conn = self._require_open()
            try:
                try:
                    await conn.execute("BEGIN IMMEDIATE;")
                    for observation in observations:
                        await self._merge_one(conn, observation, now)
                    await conn.execute("COMMIT;")
                except BaseException:
                    # Also reached when cancelled mid-BEGIN; the worker thread
                    # runs statements in order, so ROLLBACK lands after BEGIN.
                    await _rollback(conn)
                    raise
            except aiosqlite.Error as exc:
                raise StoreError(f"Merge failed: {exc}", source_name="sqlite") from exc

    @staticmethod
    async def _merge_one(
        conn: aiosqlite.Connection,
        observation: KeyObservation,
        now: int,
    ) -> None:
        cursor = await conn.execute(_SELECT_FOR_MERGE_SQL, (observation.program_key,))
        existing = await cursor.fetchone()
        await cursor.close()

        if existing is None:
            await conn.execute(
                _INSERT_SQL,
                (
                    observation.program_key,
                    observation.description,
                    observation.title,
                    observation.subtitle,
                    now,
                    now,
                    now,
                ),
            )
            return

        # A clock that steps backwards must not break first_seen <= last_seen.
        seen = max(now, existing["last_seen"], existing["updated_at"])
        await conn.execute(
            _UPDATE_SQL,
            (
                _coalesce(observation.description, existing["description"]),
                _coalesce(observation.title, existing["title"]),
                _coalesce(observation.subtitle, existing["subtitle"]),
                seen,
                seen,
                observation.program_key,
            ),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_all(self) -> list[ProgramKeyRecord]:
        async with self._lock:
            conn = self._require_open()
            try:
                cursor = await conn.execute(_SELECT_ALL_SQL)
                rows = await cursor.fetchall()
            except aiosqlite.Error as exc:
                raise StoreError(f"Listing program keys failed: {exc}", source_name="sqlite") from exc
        return [ProgramKeyRecord.from_row(row) for row in rows]

    async def get_by_key(self, program_key: str) -> ProgramKeyRecord | None:
        async with self._lock:
            conn = self._require_open()
            try:
                cursor = await conn.execute(_SELECT_ONE_SQL, (program_key,))
                row = await cursor.fetchone()
            except aiosqlite.Error as exc:
                raise StoreError(f"Lookup of {program_key!r} failed: {exc}", source_name="sqlite") from exc
        return ProgramKeyRecord.from_row(row) if row is not None else None

    async def get_stats(self) -> CatalogStats:
        cutoff = int(self._clock()) - _RECENT_WINDOW_SECONDS
        async with self._lock:
            conn = self._require_open()
            try:
                cursor = await conn.execute(_STATS_SQL, (cutoff,))
                row = await cursor.fetchone()
            except aiosqlite.Error as exc:
                raise StoreError(f"Computing stats failed: {exc}", source_name="sqlite") from exc

        return CatalogStats(
            total_keys=row["total_keys"],
            recent_keys=row["recent_keys"] or 0,
            last_update=row["last_update"],
        )

    def get_provider_name(self) -> str:
        return "sqlite_key_store"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_open(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreError("Key store is not open", source_name="sqlite")
        return self._conn


def _coalesce(new: str | None, stored: str | None) -> str | None:
    return new if new is not None else stored


def _as_observation(
    program_key: str,
    description: str | None,
    title: str | None,
    subtitle: str | None,
) -> KeyObservation:
    if not isinstance(program_key, str) or not program_key:
        msg = f"program_key must be a non-empty string, got {program_key!r}"
        raise ValueError(msg)
    return KeyObservation(
        program_key=program_key,
        description=description,
        title=title,
        subtitle=subtitle,
    )


async def _rollback(conn: aiosqlite.Connection) -> None:
    try:
        await conn.execute("ROLLBACK;")
    except aiosqlite.OperationalError as exc:
        # No transaction was open: BEGIN itself failed.
        logger.debug("program_key_store_rollback_skipped", error=str(exc))
