"""
Binary serialization of probe specifications.

Monitors store their ProbeSpec as an opaque blob. The format is a compact,
self-describing, length-prefixed binary record:

    version:u8  probe_tag:u8  <probe fields>

Integers are big-endian. Strings are UTF-8 and, like byte strings, prefixed
with their length as u32. Every union (probe kind, expected response, HTTP
method) is written as a one-byte tag followed by the variant's fields.
"""

import struct
from typing import List, Tuple

from multidict import CIMultiDict

from service_monitor.domain import (
    HttpAny,
    HttpExpectedResponse,
    HttpMethod,
    HttpProbeSpec,
    HttpResponse,
    HttpStatusCode,
    ProbeSpec,
    TcpBits,
    TcpExpectedResponse,
    TcpOpenPort,
    TcpProbeSpec,
)
from service_monitor.exceptions import ProbeSpecDecodeError

FORMAT_VERSION = 1

_TAG_TCP = 0
_TAG_HTTP = 1

_TAG_TCP_OPEN_PORT = 0
_TAG_TCP_BITS = 1

_TAG_HTTP_ANY = 0
_TAG_HTTP_STATUS_CODE = 1
_TAG_HTTP_RESPONSE = 2

# The position of a method in this tuple is its tag; only append new methods.
_METHODS: Tuple[HttpMethod, ...] = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.OPTIONS,
    HttpMethod.HEAD,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
    HttpMethod.PATCH,
)

_U8 = struct.Struct(">B")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")


class _Writer:
    def __init__(self) -> None:
        self._parts: List[bytes] = []

    def u8(self, value: int) -> None:
        self._parts.append(_U8.pack(value))

    def u16(self, value: int) -> None:
        self._parts.append(_U16.pack(value))

    def u32(self, value: int) -> None:
        self._parts.append(_U32.pack(value))

    def raw(self, value: bytes) -> None:
        self.u32(len(value))
        self._parts.append(value)

    def text(self, value: str) -> None:
        self.raw(value.encode("utf-8"))

    def getvalue(self) -> bytes:
        return b"".join(self._parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data: bytes = data
        self._offset: int = 0

    def _take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise ProbeSpecDecodeError(
                f"Unexpected end of data at offset {self._offset} (needed {size} bytes)"
            )
        chunk = self._data[self._offset : end]
        self._offset = end
        return chunk

    def u8(self) -> int:
        return _U8.unpack(self._take(_U8.size))[0]

    def u16(self) -> int:
        return _U16.unpack(self._take(_U16.size))[0]

    def u32(self) -> int:
        return _U32.unpack(self._take(_U32.size))[0]

    def raw(self) -> bytes:
        return self._take(self.u32())

    def text(self) -> str:
        try:
            return self.raw().decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProbeSpecDecodeError(f"Invalid UTF-8 string: {e}") from e

    def finish(self) -> None:
        if self._offset != len(self._data):
            raise ProbeSpecDecodeError(
                f"{len(self._data) - self._offset} trailing bytes after probe specification"
            )


def _write_tcp_expected(writer: _Writer, expected: TcpExpectedResponse) -> None:
    if isinstance(expected, TcpOpenPort):
        writer.u8(_TAG_TCP_OPEN_PORT)
    elif isinstance(expected, TcpBits):
        writer.u8(_TAG_TCP_BITS)
        writer.raw(expected.sent)
        writer.text(expected.pattern)
    else:
        raise TypeError(f"Unsupported TCP expected response: {type(expected).__name__}")


def _write_http_expected(writer: _Writer, expected: HttpExpectedResponse) -> None:
    if isinstance(expected, HttpAny):
        writer.u8(_TAG_HTTP_ANY)
    elif isinstance(expected, HttpStatusCode):
        writer.u8(_TAG_HTTP_STATUS_CODE)
        writer.text(expected.codes)
    elif isinstance(expected, HttpResponse):
        writer.u8(_TAG_HTTP_RESPONSE)
        if expected.codes is None:
            writer.u8(0)
        else:
            writer.u8(1)
            writer.text(expected.codes)
        writer.u32(expected.checksum)
    else:
        raise TypeError(f"Unsupported HTTP expected response: {type(expected).__name__}")


def encode_probe_spec(spec: ProbeSpec) -> bytes:
    """
    Serializes a probe specification into its binary representation.

    Args:
        spec: The probe specification to encode.

    Returns:
        bytes: The encoded blob.

    Raises:
        TypeError: If spec, or one of its expected responses, has an unknown type.
    """
    writer = _Writer()
    writer.u8(FORMAT_VERSION)

    if isinstance(spec, TcpProbeSpec):
        writer.u8(_TAG_TCP)
        writer.text(spec.host)
        writer.u16(spec.port)
        _write_tcp_expected(writer, spec.expected)
    elif isinstance(spec, HttpProbeSpec):
        writer.u8(_TAG_HTTP)
        writer.text(spec.url)
        writer.u8(_METHODS.index(spec.method))
        writer.u32(len(spec.headers))
        for name, value in spec.headers.items():
            writer.text(name)
            writer.text(value)
        writer.raw(spec.body)
        _write_http_expected(writer, spec.expected)
    else:
        raise TypeError(f"Unsupported probe specification: {type(spec).__name__}")

    return writer.getvalue()


def _read_tcp_expected(reader: _Reader) -> TcpExpectedResponse:
    tag = reader.u8()
    if tag == _TAG_TCP_OPEN_PORT:
        return TcpOpenPort()
    if tag == _TAG_TCP_BITS:
        sent = reader.raw()
        return TcpBits(sent=sent, pattern=reader.text())
    raise ProbeSpecDecodeError(f"Unknown TCP expected response tag: {tag}")


def _read_http_expected(reader: _Reader) -> HttpExpectedResponse:
    tag = reader.u8()
    if tag == _TAG_HTTP_ANY:
        return HttpAny()
    if tag == _TAG_HTTP_STATUS_CODE:
        return HttpStatusCode(codes=reader.text())
    if tag == _TAG_HTTP_RESPONSE:
        codes = reader.text() if reader.u8() else None
        return HttpResponse(codes=codes, checksum=reader.u32())
    raise ProbeSpecDecodeError(f"Unknown HTTP expected response tag: {tag}")


def _read_method(reader: _Reader) -> HttpMethod:
    tag = reader.u8()
    if tag >= len(_METHODS):
        raise ProbeSpecDecodeError(f"Unknown HTTP method tag: {tag}")
    return _METHODS[tag]


def decode_probe_spec(data: bytes) -> ProbeSpec:
    """
    Deserializes a probe specification from its binary representation.

    Args:
        data: A blob produced by encode_probe_spec.

    Returns:
        ProbeSpec: The decoded probe specification.

    Raises:
        ProbeSpecDecodeError: If the blob is truncated, has trailing data, or
            contains an unknown version or tag.
    """
    reader = _Reader(bytes(data))

    version = reader.u8()
    if version != FORMAT_VERSION:
        raise ProbeSpecDecodeError(f"Unsupported probe specification version: {version}")

    spec: ProbeSpec
    tag = reader.u8()
    if tag == _TAG_TCP:
        host = reader.text()
        port = reader.u16()
        spec = TcpProbeSpec(host=host, port=port, expected=_read_tcp_expected(reader))
    elif tag == _TAG_HTTP:
        url = reader.text()
        method = _read_method(reader)
        headers: CIMultiDict = CIMultiDict()
        for _ in range(reader.u32()):
            name = reader.text()
            headers.add(name, reader.text())
        body = reader.raw()
        spec = HttpProbeSpec(
            url=url,
            method=method,
            headers=headers,
            body=body,
            expected=_read_http_expected(reader),
        )
    else:
        raise ProbeSpecDecodeError(f"Unknown probe specification tag: {tag}")

    reader.finish()
    return spec
