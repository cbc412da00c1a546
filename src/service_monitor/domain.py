"""
Domain models for the service monitoring system.

This module defines the core data structures used throughout the application:
monitor definitions and their probe specifications, the expected responses a
probe is evaluated against, probe results and the persisted history records.
All models are immutable.
"""

from enum import Enum, IntEnum
from typing import NamedTuple, Optional, Union

from multidict import CIMultiDict


class HttpMethod(str, Enum):
    """
    Defines supported HTTP methods as a type-safe enumeration.

    Inheriting from 'str' allows enum members to behave like strings,
    making them compatible with libraries expecting string values.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    TRACE = "TRACE"
    CONNECT = "CONNECT"
    PATCH = "PATCH"


class TcpOpenPort(NamedTuple):
    """The probe succeeds as soon as the TCP connection is established."""


class TcpBits(NamedTuple):
    """
    Send bytes after connecting and compare the reply against a bit pattern.

    Attributes:
        sent: The bytes written to the socket once connected.
        pattern: A string over '0', '1' and '?' describing the expected reply,
            eight characters per byte, most significant bit first. '?' matches
            either bit value. An empty pattern accepts any reply.
    """

    sent: bytes
    pattern: str


TcpExpectedResponse = Union[TcpOpenPort, TcpBits]


class HttpAny(NamedTuple):
    """Any HTTP response is acceptable."""


class HttpStatusCode(NamedTuple):
    """
    The response status must belong to a status-code set.

    Attributes:
        codes: A status-code set specification such as "200-299,301".
    """

    codes: str


class HttpResponse(NamedTuple):
    """
    The response status and body must both match.

    Attributes:
        codes: An optional status-code set specification. When None, any
            status is accepted and only the body is checked.
        checksum: The expected Adler-32 checksum of the response body.
    """

    codes: Optional[str]
    checksum: int


HttpExpectedResponse = Union[HttpAny, HttpStatusCode, HttpResponse]


class TcpProbeSpec(NamedTuple):
    """
    Configuration of a raw TCP probe.

    Attributes:
        host: The host name or IP address to connect to.
        port: The TCP port to connect to.
        expected: What counts as a successful probe.
    """

    host: str
    port: int
    expected: TcpExpectedResponse


class HttpProbeSpec(NamedTuple):
    """
    Configuration of an HTTP probe.

    Attributes:
        url: The absolute URL to request, validated at creation time.
        method: The HTTP method to use for the request.
        headers: Request headers, with case-insensitive names.
        body: The raw request body.
        expected: What counts as a successful probe.
    """

    url: str
    method: HttpMethod
    headers: CIMultiDict
    body: bytes
    expected: HttpExpectedResponse


ProbeSpec = Union[TcpProbeSpec, HttpProbeSpec]


class Monitor(NamedTuple):
    """
    A persisted definition of what to probe, how often, and what counts as success.

    Attributes:
        id: The unique identifier of the monitor in the catalog.
        name: Optional human-readable name.
        interval_minutes: Minutes between two checks, 1..10080.
        timeout_seconds: Per-probe timeout, 1..60.
        enabled: Disabled monitors are not scheduled but keep their history.
        probe: The protocol-specific probe configuration.
    """

    id: int
    name: Optional[str]
    interval_minutes: int
    timeout_seconds: int
    enabled: bool
    probe: ProbeSpec


class ProbeOutcome(IntEnum):
    """
    Classification of a probe execution.

    The integer values are the ones persisted in the records table.
    """

    OK = 0
    UNEXPECTED_RESPONSE = 1
    DOWN = 2
    IO_ERROR = 3


class ProbeResult(NamedTuple):
    """
    The outcome of one probe execution.

    Use the named constructors rather than the raw tuple: they guarantee that
    a duration is only attached to outcomes where the service replied.

    Attributes:
        outcome: The classification of the probe.
        duration_ms: Time until the service replied, for OK and
            UNEXPECTED_RESPONSE outcomes only.
        info: A human-readable description of what happened.
    """

    outcome: ProbeOutcome
    duration_ms: Optional[int]
    info: str

    @classmethod
    def ok(cls, duration_ms: int, info: str) -> "ProbeResult":
        return cls(ProbeOutcome.OK, duration_ms, info)

    @classmethod
    def unexpected_response(cls, duration_ms: int, info: str) -> "ProbeResult":
        return cls(ProbeOutcome.UNEXPECTED_RESPONSE, duration_ms, info)

    @classmethod
    def down(cls, info: str) -> "ProbeResult":
        return cls(ProbeOutcome.DOWN, None, info)

    @classmethod
    def io_error(cls, info: str) -> "ProbeResult":
        return cls(ProbeOutcome.IO_ERROR, None, info)


class Record(NamedTuple):
    """
    An immutable history entry describing a single probe execution.

    Attributes:
        monitor_id: The monitor the probe belongs to.
        outcome: The classification of the probe.
        response_time_ms: Response time, absent for DOWN and IO_ERROR.
        checked_at: Unix timestamp in seconds at which the result was recorded.
        info: Free-text details about the result.
    """

    monitor_id: int
    outcome: ProbeOutcome
    response_time_ms: Optional[int]
    checked_at: int
    info: str


class RedirectPolicy(NamedTuple):
    """
    How HTTP probes handle redirects.

    Attributes:
        follow: Whether redirects are followed at all.
        max_hops: Maximum number of redirects followed before failing.
    """

    follow: bool
    max_hops: int
