"""
Logging setup for the service monitoring system.

Logging is configured once at startup with logging.config.dictConfig, from
one of the JSON files bundled next to this module ("dev" or "prod") or from a
user-supplied file ("custom"). Every record is then tagged with the name of
the instance that emitted it.
"""

import json
import logging.config
import os
from typing import Any, Dict

from service_monitor.config import MonitoringContext

LOGGING_TYPES = ("dev", "prod", "custom")

_BUNDLED_CONFIGS = {
    "dev": "logging-config-dev.json",
    "prod": "logging-config-prod.json",
}


def configure_logging(context: MonitoringContext) -> None:
    """
    Applies the logging configuration selected by the context.

    Args:
        context: Provides the logging type, the custom configuration file
            and the instance name.

    Raises:
        ValueError: If the logging type is empty or unknown, or if "custom"
            is selected without a configuration file.
        RuntimeError: If the configuration file cannot be loaded.
    """
    _load_logging_config(_resolve_config_file(context))

    # Records of child loggers skip the root logger's filters but not its handlers'
    root_logger = logging.getLogger()
    instance_filter = _InstanceNameFilter(instance_name=context.instance_name)
    root_logger.addFilter(instance_filter)
    for handler in root_logger.handlers:
        handler.addFilter(instance_filter)

    logging.debug("Logging configured and InstanceNameFilter added.")


def _resolve_config_file(context: MonitoringContext) -> str:
    logging_type = context.logging_type.lower()
    if not logging_type:
        raise ValueError("Logging type must be provided.")

    if logging_type in _BUNDLED_CONFIGS:
        return _get_local_package_file_path(_BUNDLED_CONFIGS[logging_type])

    if logging_type == "custom":
        if not context.logging_config_file:
            raise ValueError("Custom logging configuration file must be provided.")
        return context.logging_config_file

    raise ValueError(
        f"Invalid logging type: {context.logging_type}. "
        f"Allowed values are: {', '.join(LOGGING_TYPES)}"
    )


def _load_logging_config(config_file: str) -> None:
    """
    Reads a JSON dictConfig file and applies it.

    Raises:
        RuntimeError: If the file is missing, is not valid JSON, or is
            rejected by dictConfig.
    """
    try:
        with open(config_file) as f:
            config: Dict[str, Any] = json.load(f)
        logging.config.dictConfig(config)
    except FileNotFoundError as err:
        raise RuntimeError(f"Logging config file not found: {config_file}") from err
    except json.JSONDecodeError as err:
        raise RuntimeError(f"Invalid JSON format in logging config file: {config_file}") from err
    except Exception as err:
        raise RuntimeError(f"Error loading logging config: {str(err)}") from err


def _get_local_package_file_path(config_file: str) -> str:
    """Returns the absolute path of a file bundled in this package."""
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), config_file)


class _InstanceNameFilter(logging.Filter):
    """Sets the 'instance_name' attribute used by the bundled formatters."""

    def __init__(self, instance_name: str) -> None:
        super().__init__()
        self._instance_name: str = instance_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.instance_name = self._instance_name
        return True
