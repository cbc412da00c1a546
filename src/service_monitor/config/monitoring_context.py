"""
Configuration context for the service monitoring system.

This module defines a data structure that holds all configuration parameters
for the monitoring system. It serves as a central point for passing configuration
throughout the application.
"""

from typing import NamedTuple


class MonitoringContext(NamedTuple):
    """
    A data structure containing all configuration parameters for the monitoring system.

    This class is immutable and provides a type-safe way to pass configuration
    throughout the application. It is created by parsing command-line arguments
    and environment variables.

    Attributes:
        dsn: Database connection string for PostgreSQL.
        instance_name: Name of this monitoring instance, added to every log record.
        logging_type: Type of logging configuration to use (dev, prod, or custom).
        logging_config_file: Path to custom logging configuration file (if logging_type is 'custom').
        db_pool_size: Maximum number of connections in the database connection pool.
        tick_interval: Seconds between two runs of the checker loop.
        fivexx_down: Whether a 5xx HTTP response classifies a service as down.
        follow_redirects: Whether HTTP probes follow redirects.
        max_redirects: Maximum number of redirects followed by HTTP probes.
    """

    dsn: str
    instance_name: str
    logging_type: str
    logging_config_file: str
    db_pool_size: int
    tick_interval: int
    fivexx_down: bool
    follow_redirects: bool
    max_redirects: int
