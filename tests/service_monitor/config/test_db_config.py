"""
Unit tests for the database configuration module.

This module contains tests for initiate_db_pool, ensuring that it creates,
validates and prepares a connection pool to the PostgreSQL database, and
that it releases the pool when any of those steps fails.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from service_monitor.config.db_config import initiate_db_pool
from service_monitor.config.monitoring_context import MonitoringContext


@pytest.fixture
def mock_context() -> MonitoringContext:
    """
    Creates a MonitoringContext for testing.

    Returns:
        MonitoringContext: A MonitoringContext with test values.
    """
    return MonitoringContext(
        dsn="postgresql://localhost/test",
        instance_name="test-instance",
        logging_type="dev",
        logging_config_file="",
        db_pool_size=7,
        tick_interval=5,
        fivexx_down=False,
        follow_redirects=True,
        max_redirects=10,
    )


@pytest.fixture
def mock_pool() -> MagicMock:
    """
    Creates a mock asyncpg.pool.Pool for testing.

    Returns:
        MagicMock: A mock Pool whose connections answer the validation query.
    """
    pool = MagicMock(spec=asyncpg.pool.Pool)
    pool.close = AsyncMock()

    mock_conn = AsyncMock()
    mock_conn.fetchval.return_value = 1
    pool.acquire.return_value.__aenter__.return_value = mock_conn
    pool.acquire.return_value.__aexit__.return_value = False

    return pool


@pytest.mark.asyncio
async def test_initiate_db_pool_should_create_validate_and_prepare_pool(
    mock_context: MonitoringContext, mock_pool: MagicMock
) -> None:
    """
    Tests that initiate_db_pool creates the pool, validates it and creates the schema.
    """
    # Arrange
    with patch("asyncpg.create_pool", new_callable=AsyncMock, return_value=mock_pool) as mock_create_pool:
        with patch("service_monitor.config.db_config.create_schema") as mock_create_schema:
            # Act
            result = await initiate_db_pool(mock_context)

            # Assert
            mock_create_pool.assert_awaited_once_with(dsn=mock_context.dsn, max_size=7)
            mock_conn = mock_pool.acquire.return_value.__aenter__.return_value
            mock_conn.fetchval.assert_awaited_once_with("SELECT 1")
            mock_create_schema.assert_awaited_once_with(mock_pool)
            mock_pool.close.assert_not_called()
            assert result is mock_pool


@pytest.mark.asyncio
async def test_initiate_db_pool_should_close_pool_and_raise_exception_on_error(
    mock_context: MonitoringContext, mock_pool: MagicMock
) -> None:
    """
    Tests that initiate_db_pool closes the pool and re-raises when connection validation fails.
    """
    # Arrange
    mock_conn = mock_pool.acquire.return_value.__aenter__.return_value
    mock_conn.fetchval.side_effect = OSError("Connection error")

    with patch("asyncpg.create_pool", new_callable=AsyncMock, return_value=mock_pool):
        with patch("service_monitor.config.db_config.create_schema") as mock_create_schema:
            # Act & Assert
            with pytest.raises(OSError, match="Connection error"):
                await initiate_db_pool(mock_context)

            mock_pool.close.assert_awaited_once()
            mock_create_schema.assert_not_called()


@pytest.mark.asyncio
async def test_initiate_db_pool_should_close_pool_when_schema_creation_fails(
    mock_context: MonitoringContext, mock_pool: MagicMock
) -> None:
    """
    Tests that a failure to create the schema also releases the pool.
    """
    # Arrange
    with patch("asyncpg.create_pool", new_callable=AsyncMock, return_value=mock_pool):
        with patch(
            "service_monitor.config.db_config.create_schema",
            side_effect=RuntimeError("permission denied"),
        ):
            # Act & Assert
            with pytest.raises(RuntimeError, match="permission denied"):
                await initiate_db_pool(mock_context)

            mock_pool.close.assert_awaited_once()
