"""Validation of host names and IP literals found in media URLs."""

from __future__ import annotations

import ipaddress

_MAX_HOSTNAME_BYTES = 253
_MAX_LABEL_BYTES = 63


def validate_host(raw: str) -> str:
    """Check that ``raw`` is a valid IPv4, IPv6 or DNS host; return it unchanged.

    Raises ``ValueError`` describing which kind of host was rejected.
    """
    if _looks_like_ipv4(raw):
        if not _validate_ipv4(raw):
            raise ValueError(f"bad IP: '{raw}'")
    elif _looks_like_ipv6(raw):
        if not _validate_ipv6(raw):
            raise ValueError(f"bad IPv6: '{raw}'")
    elif not _validate_hostname(raw):
        raise ValueError(f"bad hostname: '{raw}'")
    return raw


def _looks_like_ipv4(raw: str) -> bool:
    parts = raw.split(".")
    return len(parts) == 4 and all(part and part.isdecimal() for part in parts)


def _validate_ipv4(raw: str) -> bool:
    try:
        ipaddress.IPv4Address(raw)
    except ValueError:
        return False
    return True


def _looks_like_ipv6(raw: str) -> bool:
    return ":" in raw or (raw.startswith("[") and raw.endswith("]"))


def _validate_ipv6(raw: str) -> bool:
    if "%" in raw:
        return False
    try:
        address = ipaddress.IPv6Address(raw)
    except ValueError:
        return False
    return address.ipv4_mapped is None


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8", "surrogatepass"))


def _validate_hostname(raw: str) -> bool:
    if _byte_length(raw) > _MAX_HOSTNAME_BYTES:
        return False
    for label in raw.split("."):
        if not 1 <= _byte_length(label) <= _MAX_LABEL_BYTES:
            return False
        if label.startswith("-") or label.endswith("-"):
            return False
        if not all(ch.isalpha() or ch.isdecimal() or ch == "-" for ch in label):
            return False
    return True