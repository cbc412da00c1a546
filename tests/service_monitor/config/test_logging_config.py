"""
Unit tests for the logging configuration module.

This module contains tests for the logging configuration module, ensuring that
it correctly configures logging based on the provided configuration context
and handles different logging types and error conditions.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

import json
import logging
import os
from unittest.mock import MagicMock, mock_open, patch

import pytest

from service_monitor.config.logging_config import (
    _get_local_package_file_path,
    _InstanceNameFilter,
    _load_logging_config,
    configure_logging,
)
from service_monitor.config.monitoring_context import MonitoringContext


def _context(logging_type: str, logging_config_file: str = "") -> MonitoringContext:
    return MonitoringContext(
        dsn="postgresql://localhost/test",
        instance_name="test-instance",
        logging_type=logging_type,
        logging_config_file=logging_config_file,
        db_pool_size=10,
        tick_interval=5,
        fivexx_down=False,
        follow_redirects=True,
        max_redirects=10,
    )


def test_get_local_package_file_path_should_point_to_bundled_configs() -> None:
    """
    Tests that the bundled logging configurations are found next to the module.
    """
    # Act
    dev_path = _get_local_package_file_path("logging-config-dev.json")
    prod_path = _get_local_package_file_path("logging-config-prod.json")

    # Assert
    assert os.path.isfile(dev_path)
    assert os.path.isfile(prod_path)


@pytest.mark.parametrize("file_name", ["logging-config-dev.json", "logging-config-prod.json"])
def test_bundled_configs_should_be_valid_dict_configs(file_name: str) -> None:
    """
    Tests that the bundled configurations are accepted by logging.config.dictConfig.
    """
    # Arrange
    file_path = _get_local_package_file_path(file_name)

    # Act
    with patch("logging.config.dictConfig") as mock_dict_config:
        _load_logging_config(file_path)

    # Assert
    config = mock_dict_config.call_args.args[0]
    assert config["version"] == 1
    assert "instance_name" in json.dumps(config["formatters"])


def test_load_logging_config_should_load_and_apply_config() -> None:
    """
    Tests that _load_logging_config loads and applies the logging configuration.
    """
    # Arrange
    config_file = "test-config.json"
    mock_config = {"version": 1, "formatters": {}, "handlers": {}, "loggers": {}}

    with patch("builtins.open", mock_open()) as mock_file:
        with patch("json.load", return_value=mock_config) as mock_json_load:
            with patch("logging.config.dictConfig") as mock_dict_config:
                # Act
                _load_logging_config(config_file)

                # Assert
                mock_file.assert_called_once_with(config_file)
                mock_json_load.assert_called_once()
                mock_dict_config.assert_called_once_with(mock_config)


def test_load_logging_config_should_raise_runtime_error_when_file_not_found() -> None:
    """
    Tests that _load_logging_config raises RuntimeError when the file is not found.
    """
    # Arrange
    config_file = "non-existent-config.json"

    with patch("builtins.open", side_effect=FileNotFoundError()):
        # Act & Assert
        with pytest.raises(RuntimeError, match=f"Logging config file not found: {config_file}"):
            _load_logging_config(config_file)


def test_load_logging_config_should_raise_runtime_error_when_invalid_json() -> None:
    """
    Tests that _load_logging_config raises RuntimeError when the JSON is invalid.
    """
    # Arrange
    config_file = "invalid-json-config.json"

    with patch("builtins.open", mock_open()):
        with patch("json.load", side_effect=json.JSONDecodeError("Invalid JSON", "", 0)):
            # Act & Assert
            with pytest.raises(
                RuntimeError, match=f"Invalid JSON format in logging config file: {config_file}"
            ):
                _load_logging_config(config_file)


def test_load_logging_config_should_raise_runtime_error_when_other_error() -> None:
    """
    Tests that _load_logging_config raises RuntimeError when any other error occurs.
    """
    # Arrange
    with patch("builtins.open", mock_open()):
        with patch("json.load", side_effect=Exception("Test error")):
            # Act & Assert
            with pytest.raises(RuntimeError, match="Error loading logging config: Test error"):
                _load_logging_config("error-config.json")


def test_instance_name_filter_should_add_instance_name_to_record() -> None:
    """
    Tests that _InstanceNameFilter adds the instance name to the log record.
    """
    # Arrange
    filter_instance = _InstanceNameFilter(instance_name="test-instance")
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)

    # Act
    result = filter_instance.filter(record)

    # Assert
    assert result is True
    assert record.instance_name == "test-instance"


@pytest.mark.parametrize(
    "logging_type, file_name",
    [("dev", "logging-config-dev.json"), ("PROD", "logging-config-prod.json")],
)
def test_configure_logging_should_use_bundled_config(logging_type: str, file_name: str) -> None:
    """
    Tests that the dev and prod logging types load the bundled configurations.
    """
    # Arrange
    context = _context(logging_type)
    expected_path = f"/path/to/{file_name}"

    with patch(
        "service_monitor.config.logging_config._get_local_package_file_path",
        return_value=expected_path,
    ) as mock_get_path:
        with patch("service_monitor.config.logging_config._load_logging_config") as mock_load_config:
            with patch("logging.getLogger") as mock_get_logger:
                with patch("logging.debug") as mock_debug:
                    mock_handler = MagicMock()
                    mock_root_logger = MagicMock()
                    mock_root_logger.handlers = [mock_handler]
                    mock_get_logger.return_value = mock_root_logger

                    # Act
                    configure_logging(context)

                    # Assert
                    mock_get_path.assert_called_once_with(file_name)
                    mock_load_config.assert_called_once_with(expected_path)
                    mock_get_logger.assert_called_once_with()
                    mock_root_logger.addFilter.assert_called_once()
                    mock_handler.addFilter.assert_called_once()
                    mock_debug.assert_called_once_with(
                        "Logging configured and InstanceNameFilter added."
                    )


def test_configure_logging_should_use_custom_config() -> None:
    """
    Tests that configure_logging uses the custom configuration when logging_type is 'custom'.
    """
    # Arrange
    context = _context("custom", "/path/to/custom/config.json")

    with patch("service_monitor.config.logging_config._load_logging_config") as mock_load_config:
        with patch("logging.getLogger") as mock_get_logger:
            mock_root_logger = MagicMock()
            mock_root_logger.handlers = []
            mock_get_logger.return_value = mock_root_logger

            # Act
            configure_logging(context)

            # Assert
            mock_load_config.assert_called_once_with("/path/to/custom/config.json")
            mock_root_logger.addFilter.assert_called_once()


def test_configure_logging_should_raise_value_error_when_empty_logging_type() -> None:
    """
    Tests that configure_logging raises ValueError when logging_type is empty.
    """
    # Act & Assert
    with pytest.raises(ValueError, match="Logging type must be provided."):
        configure_logging(_context(""))


def test_configure_logging_should_raise_value_error_when_invalid_logging_type() -> None:
    """
    Tests that configure_logging raises ValueError when logging_type is invalid.
    """
    # Act & Assert
    with pytest.raises(
        ValueError, match="Invalid logging type: invalid. Allowed values are: dev, prod, custom"
    ):
        configure_logging(_context("invalid"))


def test_configure_logging_should_raise_value_error_when_custom_without_file() -> None:
    """
    Tests that configure_logging raises ValueError when logging_type is 'custom' but no config file is provided.
    """
    # Act & Assert
    with pytest.raises(ValueError, match="Custom logging configuration file must be provided."):
        configure_logging(_context("custom"))
