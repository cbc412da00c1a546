"""
Core interfaces for the service monitoring system.

This module defines the abstract base classes that form the foundation of the
monitoring system's architecture: the probes that check a single service, and
the two storage contracts the scheduler consumes, namely the monitor catalog
and the append-only record store.
"""

import abc
from typing import List, Optional

from .domain import Monitor, ProbeResult, ProbeSpec, Record


class Prober(abc.ABC):
    """
    Abstract interface for a component that performs the check of a single service.

    Its responsibility is to encapsulate the network I/O for a given probe
    specification and return a classified result.
    """

    @abc.abstractmethod
    async def probe(self, spec: ProbeSpec, timeout: float) -> ProbeResult:
        """
        Runs the probe described by spec, bounded by timeout.

        Args:
            spec: The probe specification to execute.
            timeout: The maximum duration of the probe, in seconds.

        Returns:
            ProbeResult: The classified outcome of the probe.

        Raises:
            Exception: Implementations should handle network errors internally and
                report them in the ProbeResult rather than raising them.
        """
        pass


class MonitorCatalog(abc.ABC):
    """
    Abstract interface for the persistent set of monitor definitions.

    The catalog is read-mostly: the scheduler only lists monitors, while the
    monitor service adds, deletes and toggles them.
    """

    @abc.abstractmethod
    async def get(self, monitor_id: int) -> Monitor:
        """
        Returns the monitor with the given id.

        Raises:
            MonitorNotFoundError: If no such monitor exists.
            StorageError: If the catalog cannot be read.
        """
        pass

    @abc.abstractmethod
    async def list(self, enabled_only: bool) -> List[Monitor]:
        """
        Returns all monitors, or only the enabled ones.

        A monitor whose stored definition cannot be read is left out, so it
        never hides the others.

        Raises:
            StorageError: If the catalog cannot be read.
        """
        pass

    @abc.abstractmethod
    async def add(
        self,
        probe: ProbeSpec,
        interval_minutes: int,
        name: Optional[str],
        timeout_seconds: int,
    ) -> int:
        """
        Stores a new, enabled monitor and returns its id.

        The parameters are expected to be validated by the caller.

        Raises:
            StorageError: If the monitor cannot be stored.
        """
        pass

    @abc.abstractmethod
    async def delete(self, monitor_id: int) -> None:
        """
        Deletes a monitor together with its records.

        Raises:
            MonitorNotFoundError: If no such monitor exists.
            StorageError: If the monitor cannot be deleted.
        """
        pass

    @abc.abstractmethod
    async def toggle(self, monitor_id: int) -> bool:
        """
        Flips the enabled flag of a monitor and returns the new state.

        Raises:
            MonitorNotFoundError: If no such monitor exists.
            StorageError: If the monitor cannot be updated.
        """
        pass


class RecordStore(abc.ABC):
    """
    Abstract interface for the append-only history of probe results.

    Appends for different monitors must be safe to run concurrently.
    """

    @abc.abstractmethod
    async def append(self, monitor_id: int, result: ProbeResult, timestamp: int) -> None:
        """
        Persists the result of a probe.

        Args:
            monitor_id: The monitor the probe belongs to.
            result: The classified probe outcome.
            timestamp: Unix time in seconds at which the probe completed.

        Raises:
            StorageError: If the record cannot be stored.
        """
        pass

    @abc.abstractmethod
    async def latest(self, monitor_id: int) -> Optional[Record]:
        """
        Returns the most recent record of a monitor, or None if it was never checked.

        Raises:
            StorageError: If the records cannot be read.
        """
        pass

    @abc.abstractmethod
    async def history(self, monitor_id: int) -> List[Record]:
        """
        Returns all records of a monitor, newest first.

        Raises:
            StorageError: If the records cannot be read.
        """
        pass
