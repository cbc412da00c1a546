"""
Response matching for the service monitoring system.

This module contains the pure functions that decide whether a received
response satisfies a monitor's expected-response specification:

- the status-code set grammar used by HTTP monitors ("200-299,301,404-410"),
- the Adler-32 checksum comparison of HTTP response bodies,
- the wildcard bit-pattern comparison used by TCP monitors.
"""

import zlib
from typing import FrozenSet, List, Optional, Tuple

# Maximum length of a status-code set specification
MAX_STATUS_CODES_LENGTH = 48

# Status codes outside this range are dropped from parsed sets
MIN_STATUS_CODE = 100
MAX_STATUS_CODE = 599

_STATUS_CODES_ALLOWED_CHARS = frozenset("0123456789,-")
_BIT_PATTERN_ALLOWED_CHARS = frozenset("01?")


def parse_status_codes(spec: str) -> Optional[FrozenSet[int]]:
    """
    Parses a status-code set specification into the set of codes it denotes.

    Spaces are ignored. The specification is a comma-separated list of parts,
    each part being a single code ("301") or an inclusive range ("200-299").
    Codes that are not valid HTTP status codes are silently dropped.

    Args:
        spec: The specification to parse.

    Returns:
        Optional[FrozenSet[int]]: The codes of the set, or None if the
            specification is malformed or denotes no valid code at all.
    """
    spec = spec.replace(" ", "")
    if any(c not in _STATUS_CODES_ALLOWED_CHARS for c in spec):
        return None

    codes = set()
    for part in spec.split(","):
        hyphens = part.count("-")
        if hyphens >= 2:
            return None

        if hyphens == 0:
            if not part:
                return None
            codes.add(int(part))
            continue

        start_str, end_str = part.split("-")
        if not start_str or not end_str:
            return None
        start, end = int(start_str), int(end_str)
        if start > end:
            return None
        codes.update(range(max(start, MIN_STATUS_CODE), min(end, MAX_STATUS_CODE) + 1))

    valid_codes = frozenset(c for c in codes if MIN_STATUS_CODE <= c <= MAX_STATUS_CODE)
    return valid_codes or None


def status_matches(spec: str, status: int) -> bool:
    """
    Checks whether a status code belongs to a status-code set specification.

    A malformed specification matches nothing.
    """
    codes = parse_status_codes(spec)
    return codes is not None and status in codes


def adler32(data: bytes) -> int:
    """Computes the Adler-32 checksum of the given bytes as an unsigned 32-bit integer."""
    return zlib.adler32(data) & 0xFFFFFFFF


def checksum_matches(body: bytes, checksum: int) -> bool:
    """Checks whether the Adler-32 checksum of a body equals the expected checksum."""
    return adler32(body) == checksum


def is_valid_bit_pattern(pattern: str) -> bool:
    """
    Checks that a bit pattern only uses '0', '1' and '?' and describes whole bytes.
    """
    return len(pattern) % 8 == 0 and all(c in _BIT_PATTERN_ALLOWED_CHARS for c in pattern)


def compile_bit_pattern(pattern: str) -> List[Tuple[int, int]]:
    """
    Compiles a bit pattern into one (mask, value) pair per byte.

    Each group of eight characters describes one byte, most significant bit
    first. A mask bit is set for every fixed bit; wildcard bits are cleared in
    both the mask and the value.

    Args:
        pattern: The pattern to compile.

    Returns:
        List[Tuple[int, int]]: The (mask, value) pair of every byte.

    Raises:
        ValueError: If the pattern is not a valid bit pattern.
    """
    if not is_valid_bit_pattern(pattern):
        raise ValueError(f"Invalid bit pattern: {pattern!r}")

    octets = []
    for offset in range(0, len(pattern), 8):
        mask = 0
        value = 0
        for c in pattern[offset : offset + 8]:
            mask <<= 1
            value <<= 1
            if c != "?":
                mask |= 1
                value |= int(c)
        octets.append((mask, value))
    return octets


def bits_match(received: bytes, pattern: str) -> bool:
    """
    Compares received bytes against a wildcard bit pattern.

    An empty pattern accepts anything. Otherwise the number of received bytes
    must equal the number of bytes described by the pattern, and every fixed
    bit must have the expected value.
    """
    if not pattern:
        return True

    octets = compile_bit_pattern(pattern)
    if len(received) != len(octets):
        return False

    return all(byte & mask == value for byte, (mask, value) in zip(received, octets))
