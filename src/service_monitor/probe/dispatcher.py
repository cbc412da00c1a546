"""
Probe dispatching for the service monitoring system.

The dispatcher is the single entry point used to run a monitor now: it selects
the protocol-specific probe for the monitor's probe specification, runs it,
and guarantees that the caller always receives a ProbeResult.
"""

import logging

from service_monitor.contracts import Prober
from service_monitor.domain import HttpProbeSpec, Monitor, ProbeResult, ProbeSpec, TcpProbeSpec

# Module logger
logger = logging.getLogger(__name__)


class ProbeDispatcher:
    """
    Routes each probe specification to the prober of its protocol.

    Both probers are injected, which keeps the dispatcher free of any network
    or configuration concerns.
    """

    def __init__(self, tcp_prober: Prober, http_prober: Prober) -> None:
        """
        Initializes the dispatcher.

        Args:
            tcp_prober: The prober used for TcpProbeSpec monitors.
            http_prober: The prober used for HttpProbeSpec monitors.
        """
        self._tcp_prober: Prober = tcp_prober
        self._http_prober: Prober = http_prober

    def _select(self, spec: ProbeSpec) -> Prober:
        if isinstance(spec, TcpProbeSpec):
            return self._tcp_prober
        if isinstance(spec, HttpProbeSpec):
            return self._http_prober
        raise TypeError(f"Unsupported probe specification: {type(spec).__name__}")

    async def run(self, monitor: Monitor) -> ProbeResult:
        """
        Runs the monitor's probe with the monitor's timeout.

        Unexpected exceptions raised by a prober are logged and reported as
        an IoError result, so that a single faulty probe never propagates
        past this boundary.

        Args:
            monitor: The monitor to run.

        Returns:
            ProbeResult: The classified outcome of the probe.

        Raises:
            TypeError: If the monitor's probe specification is of an unknown type.
        """
        prober = self._select(monitor.probe)

        try:
            result = await prober.probe(monitor.probe, float(monitor.timeout_seconds))
        except Exception as e:
            logger.exception(f"Probe failed unexpectedly for monitor {monitor.id}")
            return ProbeResult.io_error(f"probe failed unexpectedly: {e}")

        logger.debug(
            f"Monitor {monitor.id} probed: {result.outcome.name} ({result.info})"
        )
        return result
