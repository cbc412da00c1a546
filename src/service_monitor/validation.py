"""
Validation of monitor definitions.

Monitor parameters arrive as raw values (typically strings from a form or a
query string). The functions below turn them into domain values, or raise a
MonitorValidationError naming the offending parameter. Nothing that fails
here ever reaches the probing core.
"""

import base64
import binascii
import re
from typing import Optional, Tuple, Union

from multidict import CIMultiDict
from yarl import URL

from service_monitor.domain import HttpMethod
from service_monitor.exceptions import MonitorValidationError
from service_monitor.matcher import MAX_STATUS_CODES_LENGTH, is_valid_bit_pattern, parse_status_codes

MIN_INTERVAL_MINUTES = 1
MAX_INTERVAL_MINUTES = 60 * 24 * 7  # 7 days

MIN_TIMEOUT_SECONDS = 1
MAX_TIMEOUT_SECONDS = 60

MAX_CHECKSUM = 0xFFFFFFFF

# RFC 9110 token characters
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
# Visible characters, spaces and tabs
_HEADER_VALUE_RE = re.compile(r"^[\t\x20-\x7e\x80-\xff]*$")

IntLike = Union[int, str]


def _parse_int(field: str, value: IntLike) -> int:
    if isinstance(value, bool):
        raise MonitorValidationError(field, "must be an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise MonitorValidationError(field, "must be an integer") from None


def _parse_bounded(field: str, value: IntLike, minimum: int, maximum: int) -> int:
    number = _parse_int(field, value)
    if number < minimum or number > maximum:
        raise MonitorValidationError(field, f"must be within {minimum}..{maximum}")
    return number


def validate_interval(value: IntLike) -> int:
    """Validates a check interval, in minutes."""
    return _parse_bounded("interval", value, MIN_INTERVAL_MINUTES, MAX_INTERVAL_MINUTES)


def validate_timeout(value: IntLike) -> int:
    """Validates a probe timeout, in seconds."""
    return _parse_bounded("timeout", value, MIN_TIMEOUT_SECONDS, MAX_TIMEOUT_SECONDS)


def validate_name(value: Optional[str]) -> Optional[str]:
    """Normalizes an optional monitor name; blank names become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_method(value: str) -> HttpMethod:
    """Parses an HTTP method name, case-insensitively."""
    try:
        return HttpMethod(value.strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in HttpMethod)
        raise MonitorValidationError("method", f"must be one of: {allowed}") from None


def validate_url(value: str) -> str:
    """
    Validates that a URL is absolute and uses the http or https scheme.

    Returns:
        str: The URL, stripped of surrounding whitespace.
    """
    value = value.strip()
    try:
        url = URL(value)
    except (ValueError, TypeError) as e:
        raise MonitorValidationError("url", f"not a valid URL ({e})") from None

    if not url.is_absolute() or url.scheme not in ("http", "https") or not url.host:
        raise MonitorValidationError("url", "must be an absolute http or https URL")
    return value


def parse_headers(value: str) -> CIMultiDict:
    """
    Parses request headers, one "Name: value" pair per line.

    Blank lines are ignored. A repeated name replaces the previous value.
    """
    headers: CIMultiDict = CIMultiDict()
    for line in value.splitlines():
        if not line.strip():
            continue
        name, separator, header_value = line.partition(":")
        if not separator:
            raise MonitorValidationError("headers", f"missing ':' in header line {line!r}")

        name, header_value = name.strip(), header_value.strip()
        if not _HEADER_NAME_RE.match(name):
            raise MonitorValidationError("headers", f"invalid header name {name!r}")
        if not _HEADER_VALUE_RE.match(header_value):
            raise MonitorValidationError("headers", f"invalid value for header {name!r}")
        headers[name] = header_value
    return headers


def decode_body(value: str) -> bytes:
    """Decodes a base64-encoded request body."""
    try:
        return base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise MonitorValidationError("body", "must be valid base64") from None


def validate_status_codes(value: str, field: str = "status_codes") -> str:
    """
    Validates a status-code set specification such as "200-299,301".

    Returns:
        str: The specification, unchanged.
    """
    if len(value) > MAX_STATUS_CODES_LENGTH:
        raise MonitorValidationError(
            field, f"must be at most {MAX_STATUS_CODES_LENGTH} characters long"
        )
    if parse_status_codes(value) is None:
        raise MonitorValidationError(field, "not a valid status code specification")
    return value


def validate_checksum(value: IntLike) -> int:
    """Validates an Adler-32 checksum."""
    return _parse_bounded("checksum", value, 0, MAX_CHECKSUM)


def parse_socket_address(value: str) -> Tuple[str, int]:
    """
    Parses a "host:port" address. IPv6 hosts must be enclosed in brackets.

    Returns:
        Tuple[str, int]: The host, without brackets, and the port.
    """
    host, separator, port_str = value.strip().rpartition(":")
    if not separator or not host:
        raise MonitorValidationError("address", "must be of the form host:port")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise MonitorValidationError("address", "IPv6 hosts must be enclosed in brackets")
    if not host:
        raise MonitorValidationError("address", "host must not be empty")

    port = _parse_bounded("address", port_str, 1, 65535)
    return host, port


def parse_hex(value: str, field: str = "sent") -> bytes:
    """Decodes a hex string with an even number of digits."""
    value = value.strip()
    if len(value) % 2 != 0:
        raise MonitorValidationError(field, "hex string must have an even length")
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise MonitorValidationError(field, "not a valid hex string") from None


def validate_bit_pattern(value: str) -> str:
    """Validates a bit pattern over '0', '1' and '?' describing whole bytes."""
    value = value.strip()
    if not is_valid_bit_pattern(value):
        raise MonitorValidationError(
            "pattern", "must only contain 0, 1 and ? and have a length divisible by 8"
        )
    return value
