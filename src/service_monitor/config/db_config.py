"""
PostgreSQL setup for the service monitoring system.

The checker loop and the monitor service share one asyncpg pool. It is only
handed out once the server answered a round trip and the monitors and
records tables exist, so that a misconfigured DSN fails at startup rather
than on the first tick.
"""

import logging

import asyncpg

from service_monitor.config import MonitoringContext
from service_monitor.storage.asyncpg_storage import create_schema

# Module logger
logger = logging.getLogger(__name__)

HEALTH_CHECK_QUERY = "SELECT 1"


async def _check_round_trip(pool: asyncpg.pool.Pool) -> None:
    async with pool.acquire() as connection:
        await connection.fetchval(HEALTH_CHECK_QUERY)


async def initiate_db_pool(context: MonitoringContext) -> asyncpg.pool.Pool:
    """
    Opens the connection pool and prepares the database.

    Args:
        context: Provides the DSN and the maximum pool size.

    Returns:
        asyncpg.pool.Pool: A ready-to-use pool.

    Raises:
        Exception: Whatever asyncpg raised while connecting or creating the
            schema. The pool is closed before the error propagates.
    """
    pool: asyncpg.pool.Pool = await asyncpg.create_pool(
        dsn=context.dsn, max_size=context.db_pool_size
    )

    try:
        await _check_round_trip(pool)
        await create_schema(pool)
    except Exception as e:
        logger.error(f"Database setup failed, closing the pool: {e}")
        await pool.close()
        raise

    logger.info(f"Database pool ready (max {context.db_pool_size} connections).")
    return pool
