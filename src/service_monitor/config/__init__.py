"""
Configuration module for the service monitoring system.

This module provides functionality to parse command-line arguments and environment
variables to create a configuration context for the monitoring system. It defines
default values and help text for all configurable parameters.
"""

import argparse
import os
from typing import Any, Optional, Sequence
from uuid import uuid4

from service_monitor.config.constants import (
    DEFAULT_DB_POOL_SIZE,
    DEFAULT_DSN,
    DEFAULT_FIVEXX_DOWN,
    DEFAULT_FOLLOW_REDIRECTS,
    DEFAULT_INSTANCE_NAME_PREFIX,
    DEFAULT_LOGGING_CONFIG_FILE,
    DEFAULT_LOGGING_TYPE,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TICK_INTERVAL,
)
from service_monitor.config.monitoring_context import MonitoringContext


def _env(name: str, default: Any) -> Any:
    value = os.getenv(name)
    return default if value is None else value


def _parse_flag(value: str) -> bool:
    return str(value).strip().lower() == "true"


def get_context(argv: Optional[Sequence[str]] = None) -> MonitoringContext:
    """
    Parse command-line arguments and environment variables to create a configuration context.

    This function creates an argument parser with options for all configurable aspects
    of the monitoring system. For each option, it first checks for a command-line argument,
    then falls back to an environment variable, and finally uses a default value.

    Args:
        argv: The arguments to parse; defaults to sys.argv[1:].

    Returns:
        MonitoringContext: A configuration context object containing all parsed settings.
    """
    parser = argparse.ArgumentParser(
        description="Periodically probes TCP and HTTP services and records their uptime."
    )

    parser.add_argument(
        "-dsn",
        type=str,
        default=_env("SERVICE_MONITOR_DSN", DEFAULT_DSN),
        help="Specifies the DSN (connection string) for the PostgreSQL database.\n"
        "If not provided, the value is read from the SERVICE_MONITOR_DSN environment variable.\n"
        f"If that is also absent, a default value for a local database is used: {DEFAULT_DSN}",
    )

    parser.add_argument(
        "-in",
        "--instance-name",
        type=str,
        default=_env("SERVICE_MONITOR_INSTANCE_NAME", f"{DEFAULT_INSTANCE_NAME_PREFIX}{uuid4()}"),
        help="Specifies the name of this monitoring instance.\n"
        "If not provided, the value is read from the SERVICE_MONITOR_INSTANCE_NAME environment variable.\n"
        f"If that is also absent, the default value will be {DEFAULT_INSTANCE_NAME_PREFIX}uuid4().",
    )

    parser.add_argument(
        "-ps",
        "--db-pool-size",
        type=int,
        default=int(_env("SERVICE_MONITOR_DB_POOL_SIZE", DEFAULT_DB_POOL_SIZE)),
        help="Specifies the maximum number of connections in the database connection pool.\n"
        "If not provided, the value is read from the SERVICE_MONITOR_DB_POOL_SIZE environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_DB_POOL_SIZE} is used.",
    )

    parser.add_argument(
        "-lt",
        "--logging-type",
        type=str,
        default=_env("SERVICE_MONITOR_LOGGING_TYPE", DEFAULT_LOGGING_TYPE),
        help="Specifies the logging configuration type to use.\n"
        "Allowed values: dev, prod, custom (case insensitive).\n"
        "For 'dev' and 'prod', system will use built-in configurations.\n"
        "For 'custom', the --logging-config-file argument is required.",
    )

    parser.add_argument(
        "-lcf",
        "--logging-config-file",
        type=str,
        default=_env("SERVICE_MONITOR_LOGGING_CONFIG_FILE", DEFAULT_LOGGING_CONFIG_FILE),
        help="Path to custom logging configuration file.\n"
        "Required when --logging-type is set to 'custom'.",
    )

    parser.add_argument(
        "-ti",
        "--tick-interval",
        type=int,
        default=int(_env("SERVICE_MONITOR_TICK_INTERVAL", DEFAULT_TICK_INTERVAL)),
        help="Specifies the number of seconds between two runs of the checker loop.\n"
        "If not provided, the value is read from the SERVICE_MONITOR_TICK_INTERVAL environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_TICK_INTERVAL} seconds is used.",
    )

    parser.add_argument(
        "-fd",
        "--fivexx-down",
        type=str,
        default=_env("SERVICE_MONITOR_FIVEXX_DOWN", DEFAULT_FIVEXX_DOWN),
        help="Specifies whether a 5xx HTTP response marks the service as down.\n"
        "If not provided, the value is read from the SERVICE_MONITOR_FIVEXX_DOWN environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_FIVEXX_DOWN} is used.",
    )

    parser.add_argument(
        "-fr",
        "--follow-redirects",
        type=str,
        default=_env("SERVICE_MONITOR_FOLLOW_REDIRECTS", DEFAULT_FOLLOW_REDIRECTS),
        help="Specifies whether HTTP probes follow redirects.\n"
        "If not provided, the value is read from the SERVICE_MONITOR_FOLLOW_REDIRECTS environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_FOLLOW_REDIRECTS} is used.",
    )

    parser.add_argument(
        "-mr",
        "--max-redirects",
        type=int,
        default=int(_env("SERVICE_MONITOR_MAX_REDIRECTS", DEFAULT_MAX_REDIRECTS)),
        help="Specifies the maximum number of redirects followed by HTTP probes.\n"
        "If not provided, the value is read from the SERVICE_MONITOR_MAX_REDIRECTS environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_MAX_REDIRECTS} is used.",
    )

    # Parse the command-line arguments
    args: Any = parser.parse_args(argv)

    if args.tick_interval < 1:
        parser.error("--tick-interval must be a positive integer")
    if args.max_redirects < 0:
        parser.error("--max-redirects must not be negative")

    # Create and return a MonitoringContext with the parsed settings
    return MonitoringContext(
        dsn=args.dsn,
        instance_name=args.instance_name,
        logging_type=args.logging_type,
        logging_config_file=args.logging_config_file,
        db_pool_size=args.db_pool_size,
        tick_interval=args.tick_interval,
        fivexx_down=_parse_flag(args.fivexx_down),
        follow_redirects=_parse_flag(args.follow_redirects),
        max_redirects=args.max_redirects,
    )
