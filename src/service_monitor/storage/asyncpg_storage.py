"""
PostgreSQL-based implementations of the MonitorCatalog and RecordStore interfaces.

This module persists monitor definitions and their append-only history of
probe results using an asyncpg connection pool. Probe specifications are
stored as opaque binary blobs produced by the codec module.
"""

import logging
from typing import List, Optional

from asyncpg import Pool, Record as PgRecord, exceptions

from service_monitor.contracts import MonitorCatalog, RecordStore
from service_monitor.domain import Monitor, ProbeOutcome, ProbeResult, ProbeSpec, Record
from service_monitor.exceptions import MonitorNotFoundError, ProbeSpecDecodeError, StorageError
from service_monitor.storage.codec import decode_probe_spec, encode_probe_spec

# Module logger
logger = logging.getLogger(__name__)

# InterfaceError covers client-side pool and connection state ("pool is closing")
_DB_ERRORS = (exceptions.PostgresError, exceptions.InterfaceError, OSError)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS monitors (
        id               SERIAL PRIMARY KEY,
        name             TEXT,
        probe_spec       BYTEA    NOT NULL,
        interval_minutes INTEGER  NOT NULL,
        timeout_seconds  INTEGER  NOT NULL,
        enabled          BOOLEAN  NOT NULL DEFAULT TRUE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS records (
        monitor_id       INTEGER  NOT NULL REFERENCES monitors (id) ON DELETE CASCADE,
        outcome          SMALLINT NOT NULL,
        response_time_ms INTEGER,
        checked_at       BIGINT   NOT NULL,
        info             TEXT     NOT NULL
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS records_monitor_id_checked_at_idx
        ON records (monitor_id, checked_at DESC);
    """,
)

SELECT_MONITOR_QUERY = """
    SELECT id, name, probe_spec, interval_minutes, timeout_seconds, enabled
    FROM monitors
    WHERE id = $1
"""

SELECT_MONITORS_QUERY = """
    SELECT id, name, probe_spec, interval_minutes, timeout_seconds, enabled
    FROM monitors
    WHERE enabled OR NOT $1
    ORDER BY id
"""

INSERT_MONITOR_QUERY = """
    INSERT INTO monitors (probe_spec, interval_minutes, name, timeout_seconds)
    VALUES ($1, $2, $3, $4)
    RETURNING id
"""

DELETE_RECORDS_QUERY = "DELETE FROM records WHERE monitor_id = $1"

DELETE_MONITOR_QUERY = "DELETE FROM monitors WHERE id = $1 RETURNING id"

TOGGLE_MONITOR_QUERY = "UPDATE monitors SET enabled = NOT enabled WHERE id = $1 RETURNING enabled"

INSERT_RECORD_QUERY = """
    INSERT INTO records (monitor_id, outcome, response_time_ms, checked_at, info)
    VALUES ($1, $2, $3, $4, $5)
"""

SELECT_LATEST_RECORD_QUERY = """
    SELECT monitor_id, outcome, response_time_ms, checked_at, info
    FROM records
    WHERE monitor_id = $1
    ORDER BY checked_at DESC
    LIMIT 1
"""

SELECT_RECORDS_QUERY = """
    SELECT monitor_id, outcome, response_time_ms, checked_at, info
    FROM records
    WHERE monitor_id = $1
    ORDER BY checked_at DESC
"""


async def create_schema(pool: Pool) -> None:
    """
    Creates the monitors and records tables if they do not exist yet.

    Args:
        pool: The asyncpg connection pool.
    """
    async with pool.acquire() as conn:
        async with conn.transaction():
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
    logger.info("Database schema is up to date.")


def map_monitor(row: PgRecord) -> Monitor:
    """
    Converts a row of the monitors table to a Monitor domain object.

    Raises:
        ProbeSpecDecodeError: If the stored probe specification is corrupted.
    """
    return Monitor(
        id=row["id"],
        name=row["name"],
        interval_minutes=row["interval_minutes"],
        timeout_seconds=row["timeout_seconds"],
        enabled=row["enabled"],
        probe=decode_probe_spec(row["probe_spec"]),
    )


def map_record(row: PgRecord) -> Record:
    """Converts a row of the records table to a Record domain object."""
    return Record(
        monitor_id=row["monitor_id"],
        outcome=ProbeOutcome(row["outcome"]),
        response_time_ms=row["response_time_ms"],
        checked_at=row["checked_at"],
        info=row["info"],
    )


class PostgresMonitorCatalog(MonitorCatalog):
    """
    A PostgreSQL implementation of the MonitorCatalog interface.

    Every mutation runs in its own transaction, so concurrent readers always
    observe a consistent catalog.
    """

    def __init__(self, pool: Pool) -> None:
        """
        Initializes the catalog.

        Args:
            pool: The asyncpg connection pool.
        """
        self._pool: Pool = pool

    async def get(self, monitor_id: int) -> Monitor:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(SELECT_MONITOR_QUERY, monitor_id)
        except _DB_ERRORS as e:
            raise StorageError(f"Could not read monitor {monitor_id}: {e}") from e

        if row is None:
            raise MonitorNotFoundError(monitor_id)
        return map_monitor(row)

    async def list(self, enabled_only: bool) -> List[Monitor]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(SELECT_MONITORS_QUERY, enabled_only)
        except _DB_ERRORS as e:
            raise StorageError(f"Could not list monitors: {e}") from e

        monitors: List[Monitor] = []
        for row in rows:
            try:
                monitors.append(map_monitor(row))
            except ProbeSpecDecodeError as e:
                logger.error(
                    f"Skipping monitor {row['id']}: stored probe specification is unreadable: {e}"
                )
        return monitors

    async def add(
        self,
        probe: ProbeSpec,
        interval_minutes: int,
        name: Optional[str],
        timeout_seconds: int,
    ) -> int:
        blob = encode_probe_spec(probe)
        logger.debug(
            f"Adding monitor - probe: {probe!r} | interval_minutes: {interval_minutes} "
            f"| timeout_seconds: {timeout_seconds}"
        )

        try:
            async with self._pool.acquire() as conn:
                monitor_id: int = await conn.fetchval(
                    INSERT_MONITOR_QUERY, blob, interval_minutes, name, timeout_seconds
                )
        except _DB_ERRORS as e:
            raise StorageError(f"Could not add monitor: {e}") from e

        logger.info(f"Monitor {monitor_id} added.")
        return monitor_id

    async def delete(self, monitor_id: int) -> None:
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(DELETE_RECORDS_QUERY, monitor_id)
                    deleted = await conn.fetchval(DELETE_MONITOR_QUERY, monitor_id)
        except _DB_ERRORS as e:
            raise StorageError(f"Could not delete monitor {monitor_id}: {e}") from e

        if deleted is None:
            raise MonitorNotFoundError(monitor_id)
        logger.info(f"Monitor {monitor_id} deleted.")

    async def toggle(self, monitor_id: int) -> bool:
        try:
            async with self._pool.acquire() as conn:
                enabled = await conn.fetchval(TOGGLE_MONITOR_QUERY, monitor_id)
        except _DB_ERRORS as e:
            raise StorageError(f"Could not toggle monitor {monitor_id}: {e}") from e

        if enabled is None:
            raise MonitorNotFoundError(monitor_id)
        logger.info(f"Monitor {monitor_id} {'enabled' if enabled else 'disabled'}.")
        return enabled


class PostgresRecordStore(RecordStore):
    """
    A PostgreSQL implementation of the RecordStore interface.

    Records are written one at a time as soon as a probe completes, so that
    the scheduler's view of "last checked" never depends on a buffer.
    """

    def __init__(self, pool: Pool) -> None:
        """
        Initializes the record store.

        Args:
            pool: The asyncpg connection pool.
        """
        self._pool: Pool = pool

    async def append(self, monitor_id: int, result: ProbeResult, timestamp: int) -> None:
        logger.debug(
            f"Adding record - outcome: {result.outcome.name} | response_time: {result.duration_ms} "
            f"| monitor_id: {monitor_id} | info: {result.info}"
        )

        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    INSERT_RECORD_QUERY,
                    monitor_id,
                    int(result.outcome),
                    result.duration_ms,
                    timestamp,
                    result.info,
                )
        except _DB_ERRORS as e:
            raise StorageError(f"Could not store record for monitor {monitor_id}: {e}") from e

    async def latest(self, monitor_id: int) -> Optional[Record]:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(SELECT_LATEST_RECORD_QUERY, monitor_id)
        except _DB_ERRORS as e:
            raise StorageError(f"Could not read records of monitor {monitor_id}: {e}") from e

        return map_record(row) if row is not None else None

    async def history(self, monitor_id: int) -> List[Record]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(SELECT_RECORDS_QUERY, monitor_id)
        except _DB_ERRORS as e:
            raise StorageError(f"Could not read records of monitor {monitor_id}: {e}") from e

        return [map_record(row) for row in rows]
