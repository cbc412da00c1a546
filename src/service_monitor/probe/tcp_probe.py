"""
TCP probe implementation using asyncio streams.

This module provides an implementation of the Prober interface that opens a
raw TCP connection to the monitored service. Depending on the expected
response it either only checks that the port accepts connections, or sends a
payload and compares the reply against a wildcard bit pattern.
"""

import asyncio
import logging
import time

from service_monitor.contracts import Prober
from service_monitor.domain import ProbeResult, TcpBits, TcpOpenPort, TcpProbeSpec
from service_monitor.matcher import bits_match

# Module logger
logger = logging.getLogger(__name__)

# Maximum number of bytes read from the service after sending the payload
READ_BUFFER_SIZE = 2048

# Number of received bytes shown in result messages
MAX_DUMPED_BYTES = 100


def _elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


def _dump(data: bytes) -> str:
    """Renders received bytes as hex, truncated to MAX_DUMPED_BYTES."""
    suffix = " (truncated)" if len(data) > MAX_DUMPED_BYTES else ""
    return f"{data[:MAX_DUMPED_BYTES].hex(' ')}{suffix}"


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError as e:
        logger.debug(f"Error while closing connection: {e}")


class TcpProbe(Prober):
    """
    A concrete implementation of Prober for raw TCP services.

    Every probe opens its own connection and closes it before returning.
    """

    async def probe(self, spec: TcpProbeSpec, timeout: float) -> ProbeResult:
        """
        Connects to the service and evaluates its behaviour against the expected response.

        Args:
            spec: The TCP probe specification.
            timeout: The maximum duration, in seconds, of the connect and of the read.

        Returns:
            ProbeResult: Down on refused or timed out connections and reads,
                IoError on any other socket error, otherwise Ok or
                UnexpectedResponse depending on the expected response.
        """
        logger.debug(f"Starting TCP probe for {spec.host}:{spec.port}")
        start_time: float = time.perf_counter()

        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(spec.host, spec.port), timeout=timeout
            )
        except asyncio.TimeoutError:
            return ProbeResult.down("connection timed out")
        except ConnectionRefusedError:
            return ProbeResult.down("connection refused")
        except OSError as e:
            return ProbeResult.io_error(str(e) or type(e).__name__)

        try:
            if isinstance(spec.expected, TcpOpenPort):
                return ProbeResult.ok(_elapsed_ms(start_time), "connection established")

            if isinstance(spec.expected, TcpBits):
                return await self._exchange(reader, writer, spec.expected, timeout, start_time)

            raise TypeError(f"Unsupported TCP expected response: {type(spec.expected).__name__}")
        finally:
            await _close(writer)

    async def _exchange(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        expected: TcpBits,
        timeout: float,
        start_time: float,
    ) -> ProbeResult:
        """
        Sends the payload, reads the reply and matches it against the bit pattern.
        """
        try:
            writer.write(expected.sent)
            await asyncio.wait_for(writer.drain(), timeout=timeout)
        except asyncio.TimeoutError:
            return ProbeResult.down("write timed out")
        except OSError as e:
            return ProbeResult.io_error(str(e) or type(e).__name__)

        try:
            received: bytes = await asyncio.wait_for(reader.read(READ_BUFFER_SIZE), timeout=timeout)
        except asyncio.TimeoutError:
            return ProbeResult.down("read timed out")
        except OSError as e:
            return ProbeResult.io_error(str(e) or type(e).__name__)

        elapsed_ms = _elapsed_ms(start_time)
        if not bits_match(received, expected.pattern):
            return ProbeResult.unexpected_response(
                elapsed_ms,
                f"response did not match the expected pattern: {_dump(received)}",
            )

        return ProbeResult.ok(
            elapsed_ms,
            f"connection established and received {len(received)} bytes: {_dump(received)}",
        )
