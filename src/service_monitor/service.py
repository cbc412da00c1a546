"""
Monitor management for the service monitoring system.

This module provides the MonitorService, the boundary through which monitors
are created, deleted, toggled and run on demand. Raw parameters are validated
here, so only well-formed monitors ever reach the catalog and the probes. A
new monitor is probed immediately after creation, so that its status is
known before the scheduler's next tick.

The checker process never creates monitors itself. MonitorService is the
library entry point for the front end (a web UI or management API) that
lets users add, remove and inspect monitors against the same database.
"""

import logging
import time
from typing import Callable, List, NamedTuple, Optional

from service_monitor.contracts import MonitorCatalog, RecordStore
from service_monitor.domain import (
    HttpAny,
    HttpExpectedResponse,
    HttpProbeSpec,
    HttpResponse,
    HttpStatusCode,
    Monitor,
    ProbeResult,
    ProbeSpec,
    TcpBits,
    TcpExpectedResponse,
    TcpOpenPort,
    TcpProbeSpec,
)
from service_monitor.exceptions import MonitorValidationError, StorageError
from service_monitor.probe.dispatcher import ProbeDispatcher
from service_monitor.reporting import CurrentStatus, WindowSummary, current_status, summarize_history
from service_monitor.validation import (
    IntLike,
    decode_body,
    parse_headers,
    parse_hex,
    parse_method,
    parse_socket_address,
    validate_bit_pattern,
    validate_checksum,
    validate_interval,
    validate_name,
    validate_status_codes,
    validate_timeout,
    validate_url,
)

# Module logger
logger = logging.getLogger(__name__)


class MonitorReport(NamedTuple):
    """
    Everything needed to present a monitor's state.

    Attributes:
        monitor: The monitor definition.
        status: The current outcome streak, None if never checked.
        windows: Outcome statistics per reporting window.
    """

    monitor: Monitor
    status: Optional[CurrentStatus]
    windows: List[WindowSummary]


def _tcp_expected(expected: str, sent: str, pattern: str) -> TcpExpectedResponse:
    if expected == "op":
        return TcpOpenPort()
    if expected == "bits":
        return TcpBits(sent=parse_hex(sent), pattern=validate_bit_pattern(pattern))
    raise MonitorValidationError("expected", "must be one of: op, bits")


def _http_expected(
    expected: str,
    status_codes: Optional[str],
    checksum: Optional[IntLike],
) -> HttpExpectedResponse:
    if expected == "any":
        return HttpAny()
    if expected == "status":
        if not status_codes:
            raise MonitorValidationError("status_codes", "required when expecting a status")
        return HttpStatusCode(codes=validate_status_codes(status_codes))
    if expected == "response":
        if checksum is None:
            raise MonitorValidationError("checksum", "required when expecting a response")
        codes = validate_status_codes(status_codes) if status_codes else None
        return HttpResponse(codes=codes, checksum=validate_checksum(checksum))
    raise MonitorValidationError("expected", "must be one of: any, status, response")


class MonitorService:
    """
    Creates, deletes, toggles and runs monitors.

    The service shares the catalog, the record store and the dispatcher with
    the checker loop; all of them are injected at construction.
    """

    def __init__(
        self,
        catalog: MonitorCatalog,
        records: RecordStore,
        dispatcher: ProbeDispatcher,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initializes the service.

        Args:
            catalog: The persistent set of monitor definitions.
            records: The store probe results are appended to.
            dispatcher: Runs the probe of a monitor.
            clock: Returns the current Unix time in seconds.
        """
        self._catalog: MonitorCatalog = catalog
        self._records: RecordStore = records
        self._dispatcher: ProbeDispatcher = dispatcher
        self._clock: Callable[[], float] = clock

    async def add_tcp_monitor(
        self,
        address: str,
        interval: IntLike,
        timeout: IntLike,
        expected: str = "op",
        name: Optional[str] = None,
        sent: str = "",
        pattern: str = "",
    ) -> int:
        """
        Validates and stores a TCP monitor, then runs it once.

        Args:
            address: The "host:port" address to connect to.
            interval: Check interval in minutes.
            timeout: Probe timeout in seconds.
            expected: "op" to only check the port is open, "bits" to send
                bytes and match the reply against a bit pattern.
            name: Optional human-readable name.
            sent: Hex-encoded bytes to send, for "bits".
            pattern: Expected reply as a 0/1/? bit pattern, for "bits".

        Returns:
            int: The id of the new monitor.

        Raises:
            MonitorValidationError: If any parameter is invalid.
            StorageError: If the monitor cannot be stored.
        """
        host, port = parse_socket_address(address)
        probe = TcpProbeSpec(host=host, port=port, expected=_tcp_expected(expected, sent, pattern))
        return await self._register(
            probe, validate_interval(interval), validate_name(name), validate_timeout(timeout)
        )

    async def add_http_monitor(
        self,
        url: str,
        interval: IntLike,
        timeout: IntLike,
        expected: str = "any",
        name: Optional[str] = None,
        method: str = "GET",
        headers: str = "",
        body: str = "",
        status_codes: Optional[str] = None,
        checksum: Optional[IntLike] = None,
    ) -> int:
        """
        Validates and stores an HTTP monitor, then runs it once.

        Args:
            url: The absolute http or https URL to request.
            interval: Check interval in minutes.
            timeout: Probe timeout in seconds.
            expected: "any", "status" or "response".
            name: Optional human-readable name.
            method: The HTTP method, case-insensitive.
            headers: Request headers, one "Name: value" per line.
            body: The base64-encoded request body.
            status_codes: Status-code set, required for "status", optional
                for "response".
            checksum: Adler-32 of the expected body, required for "response".

        Returns:
            int: The id of the new monitor.

        Raises:
            MonitorValidationError: If any parameter is invalid.
            StorageError: If the monitor cannot be stored.
        """
        probe = HttpProbeSpec(
            url=validate_url(url),
            method=parse_method(method),
            headers=parse_headers(headers),
            body=decode_body(body),
            expected=_http_expected(expected, status_codes, checksum),
        )
        return await self._register(
            probe, validate_interval(interval), validate_name(name), validate_timeout(timeout)
        )

    async def _register(
        self,
        probe: ProbeSpec,
        interval_minutes: int,
        name: Optional[str],
        timeout_seconds: int,
    ) -> int:
        monitor_id = await self._catalog.add(probe, interval_minutes, name, timeout_seconds)

        try:
            await self.run_now(monitor_id)
        except StorageError as e:
            # Without a record the checker loop treats the monitor as due.
            logger.error(f"Initial check of monitor {monitor_id} was not recorded: {e}")

        return monitor_id

    async def run_now(self, monitor_id: int) -> ProbeResult:
        """
        Probes a monitor immediately and records the result.

        Args:
            monitor_id: The monitor to run.

        Returns:
            ProbeResult: The classified outcome of the probe.

        Raises:
            MonitorNotFoundError: If no such monitor exists.
            StorageError: If the monitor cannot be read or the result stored.
        """
        monitor = await self._catalog.get(monitor_id)
        result = await self._dispatcher.run(monitor)
        await self._records.append(monitor_id, result, int(self._clock()))
        return result

    async def delete_monitor(self, monitor_id: int) -> None:
        """
        Deletes a monitor and its history.

        Raises:
            MonitorNotFoundError: If no such monitor exists.
            StorageError: If the monitor cannot be deleted.
        """
        await self._catalog.delete(monitor_id)

    async def toggle_monitor(self, monitor_id: int) -> bool:
        """
        Enables a disabled monitor or disables an enabled one.

        Returns:
            bool: The new enabled state.

        Raises:
            MonitorNotFoundError: If no such monitor exists.
            StorageError: If the monitor cannot be updated.
        """
        return await self._catalog.toggle(monitor_id)

    async def report(self, monitor_id: int) -> MonitorReport:
        """
        Builds the current status and uptime statistics of a monitor.

        Raises:
            MonitorNotFoundError: If no such monitor exists.
            StorageError: If the monitor or its records cannot be read.
        """
        monitor = await self._catalog.get(monitor_id)
        records = await self._records.history(monitor_id)
        return MonitorReport(
            monitor=monitor,
            status=current_status(records),
            windows=summarize_history(records, int(self._clock())),
        )
