"""
Main entry point for the service monitoring application.

This module initializes and runs the service monitoring system. It sets up logging,
creates database and HTTP connections, initializes the checker loop, and
handles graceful shutdown when the application is terminated.
"""

import asyncio
import logging
import signal
from typing import Optional

import aiohttp
import asyncpg

from service_monitor.config import MonitoringContext, get_context
from service_monitor.config.db_config import initiate_db_pool
from service_monitor.config.http_config import get_http_session, get_redirect_policy
from service_monitor.config.logging_config import configure_logging
from service_monitor.probe.aiohttp_probe import AiohttpProbe
from service_monitor.probe.dispatcher import ProbeDispatcher
from service_monitor.probe.tcp_probe import TcpProbe
from service_monitor.scheduler.checker import CheckerLoop
from service_monitor.storage.asyncpg_storage import PostgresMonitorCatalog, PostgresRecordStore


async def main(context: MonitoringContext) -> None:
    """
    Set up and run the service monitoring application.

    This function initializes all components of the monitoring system:
    1. Creates an HTTP session for making requests
    2. Establishes database connection pool
    3. Creates the probes, the dispatcher and the checker loop
    4. Runs the checker loop until SIGINT or SIGTERM is received
    5. Releases all resources on shutdown

    Args:
        context: Configuration context containing all application settings.

    Returns:
        None
    """
    logger: logging.Logger = logging.getLogger(__name__)
    logger.info("Starting application...")

    # Initialize HTTP session for making requests
    http_session: aiohttp.ClientSession = get_http_session(context)
    logger.info("configured: http_session")

    db_pool: Optional[asyncpg.pool.Pool] = None
    try:
        # Initialize the database connection pool
        db_pool = await initiate_db_pool(context)
        logger.info("initialized: db_pool")

        dispatcher = ProbeDispatcher(
            tcp_prober=TcpProbe(),
            http_prober=AiohttpProbe(
                session=http_session,
                redirect_policy=get_redirect_policy(context),
                fivexx_down=context.fivexx_down,
            ),
        )
        checker = CheckerLoop(
            catalog=PostgresMonitorCatalog(db_pool),
            records=PostgresRecordStore(db_pool),
            dispatcher=dispatcher,
            tick_interval=context.tick_interval,
        )

        # The tick in progress is drained before the loop returns
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, checker.stop)

        logger.info("Checker initialized. Starting monitoring loop...")
        await checker.start()

    except asyncio.CancelledError:
        logger.info("Application shutdown requested.")
    finally:
        # Ensure all resources are properly closed during shutdown
        logger.info("Shutting down resources...")
        await http_session.close()
        if db_pool:
            await db_pool.close()
        logger.info("Shutdown complete.")


def run() -> None:
    """Parses the configuration, configures logging and runs the application."""
    try:
        # Parse command-line arguments and environment variables
        service_monitor_context: MonitoringContext = get_context()

        # Configure logging based on the context
        configure_logging(service_monitor_context)

        # Run the main application
        asyncio.run(main(service_monitor_context))
    except KeyboardInterrupt:
        logging.info("Shutdown initiated by user (Ctrl+C).")


if __name__ == "__main__":
    run()
