"""
Checker loop for the service monitoring system.

This module provides the scheduler that drives all probing: on every tick it
lists the enabled monitors, determines which of them are due from their most
recent record, probes the due monitors concurrently and appends each result
to the record store.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional

from service_monitor.contracts import MonitorCatalog, RecordStore
from service_monitor.domain import Monitor, Record
from service_monitor.probe.dispatcher import ProbeDispatcher

# Module logger
logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 5.0


def is_due(last_record: Optional[Record], interval_minutes: int, now: float) -> bool:
    """
    Decides whether a monitor must be checked.

    A monitor is due when it was never checked, or when at least
    interval_minutes have elapsed since its last recorded check.

    Args:
        last_record: The most recent record of the monitor, if any.
        interval_minutes: The monitor's check interval.
        now: The current Unix time in seconds.

    Returns:
        bool: True if the monitor must be checked now.
    """
    if last_record is None:
        return True
    return last_record.checked_at + interval_minutes * 60 <= now


class CheckerLoop:
    """
    Runs due monitors on a fixed tick.

    The loop owns the probing lifecycle only: monitors are read from the
    catalog and results are written to the record store, both injected at
    construction. A monitor counts as checked once its result is persisted,
    so a failed append leaves it due for the next tick.
    """

    def __init__(
        self,
        catalog: MonitorCatalog,
        records: RecordStore,
        dispatcher: ProbeDispatcher,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initializes a new CheckerLoop instance.

        Args:
            catalog: The source of monitor definitions.
            records: The store probe results are appended to.
            dispatcher: Runs the probe of a monitor.
            tick_interval: Seconds between the start of two ticks.
            clock: Returns the current Unix time in seconds.

        Raises:
            ValueError: If tick_interval is not positive.
        """
        if not isinstance(tick_interval, (int, float)) or tick_interval <= 0:
            raise ValueError("tick_interval must be a positive number.")

        self._catalog: MonitorCatalog = catalog
        self._records: RecordStore = records
        self._dispatcher: ProbeDispatcher = dispatcher
        self._tick_interval: float = float(tick_interval)
        self._clock: Callable[[], float] = clock
        self._is_running: bool = False
        self._stop_event: Optional[asyncio.Event] = None

    async def start(self) -> None:
        """
        Runs ticks until stop() is called.

        If a tick takes longer than the tick interval, the next tick starts
        as soon as the previous one completes. Ticks never overlap.

        Returns:
            None
        """
        logger.info(f"Starting checker loop (tick interval: {self._tick_interval:.1f}s)...")
        self._is_running = True
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()

        while self._is_running:
            tick_started_at = loop.time()
            await self.run_tick()

            remaining = self._tick_interval - (loop.time() - tick_started_at)
            if remaining > 0 and self._is_running:
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    pass

        logger.info("Checker loop stopped.")

    def stop(self) -> None:
        """
        Requests the loop to stop.

        A tick in progress is drained: its probes complete and their results
        are recorded. No further tick is started and a sleeping loop wakes up
        immediately.

        Returns:
            None
        """
        logger.info("Stopping checker loop...")
        self._is_running = False
        if self._stop_event is not None:
            self._stop_event.set()

    async def run_tick(self) -> None:
        """
        Runs one tick: probes every due monitor and records the results.

        Storage failures are logged and never propagate, so a failing backend
        cannot stop the loop.

        Returns:
            None
        """
        logger.debug("Getting pending checks")
        try:
            monitors: List[Monitor] = await self._catalog.list(enabled_only=True)
        except Exception as e:
            logger.error(f"Could not list monitors, skipping tick: {e}")
            return

        if not monitors:
            return

        checked = await asyncio.gather(*(self._check_if_due(monitor) for monitor in monitors))
        logger.debug(f"Tick complete: {sum(checked)} of {len(monitors)} monitors checked.")

    async def _check_if_due(self, monitor: Monitor) -> bool:
        """
        Probes a single monitor if it is due, and records the result.

        Args:
            monitor: The monitor to evaluate.

        Returns:
            bool: True if the monitor was probed and its result recorded.
        """
        try:
            last_record = await self._records.latest(monitor.id)
        except Exception as e:
            logger.error(f"Could not read last record of monitor {monitor.id}: {e}")
            return False

        if not is_due(last_record, monitor.interval_minutes, self._clock()):
            return False

        result = await self._dispatcher.run(monitor)

        try:
            await self._records.append(monitor.id, result, int(self._clock()))
        except Exception as e:
            logger.error(
                f"Could not record {result.outcome.name} result of monitor {monitor.id}, "
                f"it stays due: {e}"
            )
            return False

        return True
