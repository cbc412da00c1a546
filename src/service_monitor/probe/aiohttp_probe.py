"""
HTTP probe implementation using the aiohttp library.

This module provides an implementation of the Prober interface that uses
the aiohttp library to perform HTTP requests. It handles timing, error handling,
redirect policy and the evaluation of the response against the monitor's
expected response.
"""

import asyncio
import logging
import time

import aiohttp

from service_monitor.contracts import Prober
from service_monitor.domain import (
    HttpAny,
    HttpExpectedResponse,
    HttpProbeSpec,
    HttpResponse,
    HttpStatusCode,
    ProbeResult,
    RedirectPolicy,
)
from service_monitor.matcher import adler32, status_matches

# Module logger
logger = logging.getLogger(__name__)


def _is_server_error(status: int) -> bool:
    return 500 <= status < 599


def _describe(status: int, body_length: int) -> str:
    return f"server replied with status {status} and {body_length} bytes"


class AiohttpProbe(Prober):
    """
    A concrete implementation of Prober using the aiohttp library.

    This class handles the entire lifecycle of a single HTTP check, including
    timing, error handling, and the evaluation of status codes and body
    checksums. It uses a shared aiohttp ClientSession for optimal performance.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        redirect_policy: RedirectPolicy,
        fivexx_down: bool,
    ) -> None:
        """
        Initializes the probe with a shared aiohttp ClientSession.

        Args:
            session: An active aiohttp.ClientSession to be used for requests.
            redirect_policy: Whether and how far redirects are followed.
            fivexx_down: Whether a 5xx response classifies the service as down,
                regardless of the expected response.
        """
        self._session: aiohttp.ClientSession = session
        self._redirect_policy: RedirectPolicy = redirect_policy
        self._fivexx_down: bool = fivexx_down

    async def probe(self, spec: HttpProbeSpec, timeout: float) -> ProbeResult:
        """
        Performs an HTTP request to the target's URL and evaluates the response.

        The timeout bounds the whole exchange: connection, request, and
        reading of the response body.

        Args:
            spec: The HTTP probe specification.
            timeout: The maximum duration of the exchange, in seconds.

        Returns:
            ProbeResult: Down if the service did not reply in time or replied
                with a 5xx status while 5xx-as-down is enabled, IoError on any
                other client failure, otherwise Ok or UnexpectedResponse.
        """
        logger.debug(f"Starting HTTP probe for {spec.method.value} {spec.url}")
        start_time: float = time.perf_counter()

        try:
            async with self._session.request(
                spec.method.value,
                spec.url,
                headers=spec.headers,
                data=spec.body or None,
                timeout=aiohttp.ClientTimeout(total=timeout),
                allow_redirects=self._redirect_policy.follow,
                max_redirects=self._redirect_policy.max_hops,
            ) as response:
                duration_ms = int((time.perf_counter() - start_time) * 1000)
                status: int = response.status

                if self._fivexx_down and _is_server_error(status):
                    return ProbeResult.down(f"server replied with status {status}")

                return await self._evaluate(spec.expected, response, duration_ms)

        except asyncio.TimeoutError:
            return ProbeResult.down("did not reply within the timeout")
        except aiohttp.ClientError as e:
            logger.debug(f"HTTP probe for {spec.url} failed: {e!r}")
            return ProbeResult.io_error(f"request failed: {str(e) or type(e).__name__}")

    async def _evaluate(
        self,
        expected: HttpExpectedResponse,
        response: aiohttp.ClientResponse,
        duration_ms: int,
    ) -> ProbeResult:
        """
        Evaluates a response against the expected response.

        Raises:
            asyncio.TimeoutError: If the body could not be read before the timeout.
        """
        status: int = response.status

        if isinstance(expected, HttpAny):
            try:
                body_length = len(await response.read())
            except aiohttp.ClientError as e:
                logger.debug(f"Ignoring unreadable response body: {e!r}")
                body_length = 0
            return ProbeResult.ok(duration_ms, _describe(status, body_length))

        try:
            body: bytes = await response.read()
        except aiohttp.ClientError:
            return ProbeResult.io_error("failed to read response body")

        info = _describe(status, len(body))

        if isinstance(expected, HttpStatusCode):
            if status_matches(expected.codes, status):
                return ProbeResult.ok(duration_ms, info)
            return ProbeResult.unexpected_response(duration_ms, info)

        if isinstance(expected, HttpResponse):
            if expected.codes is not None and not status_matches(expected.codes, status):
                return ProbeResult.unexpected_response(duration_ms, info)

            body_checksum = adler32(body)
            if body_checksum != expected.checksum:
                return ProbeResult.unexpected_response(
                    duration_ms,
                    f"body checksum mismatch ({expected.checksum} != {body_checksum})",
                )
            return ProbeResult.ok(duration_ms, info)

        raise TypeError(f"Unsupported HTTP expected response: {type(expected).__name__}")
