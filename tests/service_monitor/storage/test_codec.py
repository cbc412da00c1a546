"""
Unit tests for the probe specification codec.

The tests follow the Arrange-Act-Assert (AAA) pattern.
"""

import pytest
from multidict import CIMultiDict

from service_monitor.domain import (
    HttpAny,
    HttpMethod,
    HttpProbeSpec,
    HttpResponse,
    HttpStatusCode,
    TcpBits,
    TcpOpenPort,
    TcpProbeSpec,
)
from service_monitor.exceptions import ProbeSpecDecodeError
from service_monitor.storage.codec import FORMAT_VERSION, decode_probe_spec, encode_probe_spec


@pytest.mark.parametrize(
    "spec",
    [
        TcpProbeSpec(host="db.internal", port=5432, expected=TcpOpenPort()),
        TcpProbeSpec(
            host="::1", port=6379, expected=TcpBits(sent=b"PING\r\n", pattern="00101011????????")
        ),
        HttpProbeSpec(
            url="https://example.com/health",
            method=HttpMethod.PATCH,
            headers=CIMultiDict(),
            body=b"",
            expected=HttpStatusCode("200-299,301"),
        ),
        HttpProbeSpec(
            url="http://example.com",
            method=HttpMethod.GET,
            headers=CIMultiDict(),
            body=b"",
            expected=HttpResponse(codes=None, checksum=0xFFFFFFFF),
        ),
    ],
)
def test_decode_should_restore_encoded_spec(spec) -> None:
    """
    Tests that decoding an encoded specification yields an equal specification.
    """
    # Act
    decoded = decode_probe_spec(encode_probe_spec(spec))

    # Assert
    assert decoded == spec


def test_decode_should_restore_headers_and_body() -> None:
    """
    Tests that header order, repeated header names and binary bodies survive encoding.
    """
    # Arrange
    headers = CIMultiDict([("Accept", "text/plain"), ("X-Trace", "a"), ("x-trace", "b")])
    spec = HttpProbeSpec(
        url="https://example.com/ping",
        method=HttpMethod.POST,
        headers=headers,
        body=b"\x00\xff\x10",
        expected=HttpResponse(codes="200", checksum=12345),
    )

    # Act
    decoded = decode_probe_spec(encode_probe_spec(spec))

    # Assert
    assert list(decoded.headers.items()) == list(headers.items())
    assert decoded.headers.getall("X-TRACE") == ["a", "b"]
    assert decoded.body == b"\x00\xff\x10"
    assert decoded.expected == HttpResponse(codes="200", checksum=12345)


def test_encode_should_start_with_format_version() -> None:
    """
    Tests that every blob carries the format version in its first byte.
    """
    # Act
    data = encode_probe_spec(TcpProbeSpec(host="localhost", port=22, expected=TcpOpenPort()))

    # Assert
    assert data[0] == FORMAT_VERSION


def test_encode_should_reject_unknown_spec() -> None:
    """
    Tests that only TCP and HTTP specifications can be encoded.
    """
    # Act & Assert
    with pytest.raises(TypeError):
        encode_probe_spec(("udp", "localhost", 53))


def test_decode_should_reject_truncated_data() -> None:
    """
    Tests that a blob cut short is a decode error rather than a partial specification.
    """
    # Arrange
    data = encode_probe_spec(
        HttpProbeSpec(
            url="https://example.com",
            method=HttpMethod.GET,
            headers=CIMultiDict(),
            body=b"",
            expected=HttpAny(),
        )
    )

    # Act & Assert
    with pytest.raises(ProbeSpecDecodeError, match="Unexpected end of data"):
        decode_probe_spec(data[:-1])


def test_decode_should_reject_trailing_bytes() -> None:
    """
    Tests that extra bytes after a complete specification are rejected.
    """
    # Arrange
    data = encode_probe_spec(TcpProbeSpec(host="localhost", port=22, expected=TcpOpenPort()))

    # Act & Assert
    with pytest.raises(ProbeSpecDecodeError, match="trailing bytes"):
        decode_probe_spec(data + b"\x00")


@pytest.mark.parametrize(
    "data, message",
    [
        (b"", "Unexpected end of data"),
        (bytes([FORMAT_VERSION + 1, 0]), "Unsupported probe specification version"),
        (bytes([FORMAT_VERSION, 7]), "Unknown probe specification tag"),
    ],
)
def test_decode_should_reject_malformed_headers(data: bytes, message: str) -> None:
    """
    Tests that empty blobs, unknown versions and unknown probe tags are rejected.
    """
    # Act & Assert
    with pytest.raises(ProbeSpecDecodeError, match=message):
        decode_probe_spec(data)


def test_decode_error_should_be_a_value_error() -> None:
    """
    Tests that decode errors can be handled as plain ValueErrors.
    """
    # Act & Assert
    with pytest.raises(ValueError):
        decode_probe_spec(b"\x01")
