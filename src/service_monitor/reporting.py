"""
Uptime reporting over a monitor's history.

Helpers used to present monitors: per time window outcome statistics, the
current status streak, human-readable elapsed times and a textual description
of a probe specification.
"""

from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from service_monitor.domain import (
    HttpAny,
    HttpProbeSpec,
    HttpResponse,
    HttpStatusCode,
    ProbeOutcome,
    ProbeSpec,
    Record,
    TcpBits,
    TcpOpenPort,
    TcpProbeSpec,
)

# (label, length in seconds) of the windows reported by summarize_history
WINDOWS: Tuple[Tuple[str, int], ...] = (
    ("4h", 60 * 60 * 4),
    ("12h", 60 * 60 * 12),
    ("24h", 60 * 60 * 24),
    ("72h", 60 * 60 * 72),
    ("7d", 60 * 60 * 24 * 7),
    ("14d", 60 * 60 * 24 * 14),
    ("30d", 60 * 60 * 24 * 30),
)


class WindowSummary(NamedTuple):
    """
    Outcome statistics of the records checked within a time window.

    Attributes:
        label: The window's label, such as "24h".
        total: The number of records in the window.
        counts: The number of records per outcome.
        min_response_time_ms: Lowest response time in the window.
        max_response_time_ms: Highest response time in the window.
        avg_response_time_ms: Mean of the response times in the window.

    The response time statistics only consider records that carry a
    response time, and are None when there are no such records.
    """

    label: str
    total: int
    counts: Dict[ProbeOutcome, int]
    min_response_time_ms: Optional[int] = None
    max_response_time_ms: Optional[int] = None
    avg_response_time_ms: Optional[float] = None

    def percentage(self, outcome: ProbeOutcome) -> float:
        if not self.total:
            return 0.0
        return self.counts.get(outcome, 0) / self.total * 100


class CurrentStatus(NamedTuple):
    """
    The latest outcome of a monitor and since when it has held.

    Attributes:
        outcome: The outcome of the newest record.
        since: Timestamp of the oldest record of the current streak.
        response_time_ms: Response time of the newest record, if any.
    """

    outcome: ProbeOutcome
    since: int
    response_time_ms: Optional[int]


def summarize_history(records: Sequence[Record], now: int) -> List[WindowSummary]:
    """
    Computes outcome and response time statistics for each reporting window.

    Only windows shorter than the span covered by the history are reported,
    so that a monitor created an hour ago does not claim 30 days of uptime.

    Args:
        records: The monitor's records, in any order.
        now: The current Unix time in seconds.

    Returns:
        List[WindowSummary]: One summary per reported window, shortest first.
    """
    if not records:
        return []

    first_checked_at = min(r.checked_at for r in records)
    summaries = []
    for label, length in WINDOWS:
        if length >= now - first_checked_at:
            break
        counts = {outcome: 0 for outcome in ProbeOutcome}
        in_window = [r for r in records if r.checked_at > now - length]
        for record in in_window:
            counts[record.outcome] += 1
        response_times = [r.response_time_ms for r in in_window if r.response_time_ms is not None]
        summaries.append(
            WindowSummary(
                label=label,
                total=len(in_window),
                counts=counts,
                min_response_time_ms=min(response_times, default=None),
                max_response_time_ms=max(response_times, default=None),
                avg_response_time_ms=(
                    sum(response_times) / len(response_times) if response_times else None
                ),
            )
        )
    return summaries


def current_status(records: Sequence[Record]) -> Optional[CurrentStatus]:
    """
    Determines the current outcome streak from records ordered newest first.

    Returns:
        Optional[CurrentStatus]: None if the monitor has no record.
    """
    if not records:
        return None

    newest = records[0]
    since = newest.checked_at
    for record in records[1:]:
        if record.outcome != newest.outcome:
            break
        since = record.checked_at

    return CurrentStatus(
        outcome=newest.outcome, since=since, response_time_ms=newest.response_time_ms
    )


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def humanize_elapsed(seconds: int) -> str:
    """Renders a duration in the largest whole unit, e.g. "3 hours"."""
    if seconds < 0:
        return "in the future"

    if seconds < 60:
        return _plural(seconds, "second")
    value = seconds // 60
    if value < 60:
        return _plural(value, "minute")
    value //= 60
    if value < 24:
        return _plural(value, "hour")
    value //= 24
    if value < 30:
        return _plural(value, "day")
    value //= 30
    if value < 12:
        return _plural(value, "month")
    return _plural(value // 12, "year")


def probe_location(spec: ProbeSpec) -> str:
    """Returns where a probe points to: tcp://host:port, or the URL."""
    if isinstance(spec, TcpProbeSpec):
        host = f"[{spec.host}]" if ":" in spec.host else spec.host
        return f"tcp://{host}:{spec.port}"
    if isinstance(spec, HttpProbeSpec):
        return spec.url
    raise TypeError(f"Unsupported probe specification: {type(spec).__name__}")


def _describe_expected(spec: ProbeSpec) -> str:
    expected = spec.expected
    if isinstance(expected, TcpOpenPort):
        return "open port"
    if isinstance(expected, TcpBits):
        pattern = expected.pattern or "anything"
        return f"send {expected.sent.hex()} and expect {pattern}"
    if isinstance(expected, HttpAny):
        return "any response"
    if isinstance(expected, HttpStatusCode):
        return f"status {expected.codes}"
    if isinstance(expected, HttpResponse):
        status = f"status {expected.codes}" if expected.codes is not None else "any status"
        return f"{status} and body checksum {expected.checksum}"
    raise TypeError(f"Unsupported expected response: {type(expected).__name__}")


def probe_details(spec: ProbeSpec) -> List[Tuple[str, str]]:
    """
    Describes a probe specification as (label, value) pairs for display.
    """
    details = []
    if isinstance(spec, TcpProbeSpec):
        details.append(("Socket address", probe_location(spec)[len("tcp://") :]))
    elif isinstance(spec, HttpProbeSpec):
        try:
            body = spec.body.decode("utf-8")
        except UnicodeDecodeError:
            body = "binary"
        details.extend(
            [
                ("URL", spec.url),
                ("Method", spec.method.value),
                ("Headers", ", ".join(f"{k}: {v}" for k, v in spec.headers.items())),
                ("Body", body),
            ]
        )
    else:
        raise TypeError(f"Unsupported probe specification: {type(spec).__name__}")

    details.append(("Expected response", _describe_expected(spec)))
    return details
