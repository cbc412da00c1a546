"""
Exception hierarchy for the service monitoring system.

Probe failures are never raised: they are reported as ProbeResult values.
The exceptions below cover the remaining failure modes, namely invalid monitor
definitions rejected at creation time, missing monitors, storage failures and
corrupted probe specification blobs.
"""


class ServiceMonitorError(Exception):
    """Base class for all errors raised by the service monitor."""


class MonitorValidationError(ServiceMonitorError, ValueError):
    """
    Raised when a monitor definition is rejected at the creation boundary.

    Attributes:
        field: The name of the offending parameter.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"bad param `{field}`: {message}")
        self.field: str = field


class MonitorNotFoundError(ServiceMonitorError, LookupError):
    """Raised when a monitor id does not exist in the catalog."""

    def __init__(self, monitor_id: int) -> None:
        super().__init__(f"monitor {monitor_id} does not exist")
        self.monitor_id: int = monitor_id


class StorageError(ServiceMonitorError):
    """Raised when the storage backend fails to read or write data."""


class ProbeSpecDecodeError(ServiceMonitorError, ValueError):
    """Raised when a stored probe specification blob cannot be decoded."""
