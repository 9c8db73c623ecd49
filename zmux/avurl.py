"""Splitting and validation of media URLs the way the media toolchain reads them."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass

from zmux.hostutil import validate_host

_PORT_DIGITS = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class AVURL:
    """The components of a media URL."""

    schema: str = ""
    userinfo: str = ""
    host: str = ""
    port: str = ""
    path: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class _Split:
    schema: str = ""
    userinfo: str = ""
    host: str = ""
    port: str = ""
    path: str = ""
    has_schema: bool = False
    slash_num: int = 0
    has_at_sign: bool = False
    has_brackets: bool = False
    has_port: bool = False
    junk: str = ""

    def join(self) -> str:
        host = f"[{self.host}]" if self.has_brackets else self.host
        return "".join(
            (
                self.schema,
                ":" if self.has_schema else "",
                "/" * self.slash_num,
                self.userinfo,
                "@" if self.has_at_sign else "",
                host,
                ":" if self.has_port else "",
                self.port,
                self.junk,
                self.path,
            )
        )

    def to_url(self) -> AVURL:
        return AVURL(self.schema, self.userinfo, self.host, self.port, self.path)


def _first_of(text: str, start: int, chars: str) -> int:
    positions = [pos for ch in chars if (pos := text.find(ch, start)) != -1]
    return min(positions, default=len(text))


def _split(url: str) -> _Split:
    parts = _Split()
    colon = url.find(":")
    if colon == -1:
        parts.path = url
        return parts

    parts.has_schema = True
    parts.schema = url[:colon]
    cursor = colon + 1
    for _ in range(2):
        if cursor == len(url):
            return parts
        if url[cursor] != "/":
            break
        cursor += 1
        parts.slash_num += 1
    if cursor == len(url):
        return parts

    path_at = _first_of(url, cursor, "/?#")
    parts.path = url[path_at:]
    if path_at == cursor:
        return parts

    userinfo_at = cursor
    while (at := url.find("@", cursor, path_at)) != -1:
        parts.has_at_sign = True
        parts.userinfo = url[userinfo_at:at]
        cursor = at + 1
        if cursor == len(url):
            return parts

    bracket = url.find("]", cursor, path_at)
    if bracket != -1 and url[cursor] == "[":
        parts.has_brackets = True
        parts.host = url[cursor + 1 : bracket]
        cursor = bracket + 1
        if cursor == len(url):
            return parts
        if url[cursor] == ":":
            parts.has_port = True
            parts.port = url[cursor + 1 : path_at]
        elif cursor != path_at:
            parts.junk = url[cursor:path_at]
    elif (port_colon := url.find(":", cursor, path_at)) != -1:
        parts.has_port = True
        parts.host = url[cursor:port_colon]
        parts.port = url[port_colon + 1 : path_at]
    else:
        parts.host = url[cursor:path_at]
    return parts


def _split_checked(url: str) -> _Split:
    parts = _split(url)
    if parts.join() != url:
        raise ValueError("unable to parse URL")
    return parts


def parse(url: str) -> AVURL:
    """Split ``url`` and validate its host and port; raise ``ValueError`` if invalid."""
    parts = _split_checked(url)
    if parts.junk:
        raise ValueError("invalid URL")
    if parts.host:
        validate_host(parts.host)
    if parts.port and not is_port(parts.port):
        raise ValueError(f"bad port: '{parts.port}'")
    return parts.to_url()


def raw_parse(url: str) -> AVURL:
    """Split ``url`` into its components without validating host or port."""
    return _split_checked(url).to_url()


def is_port(s: str) -> bool:
    """Return True if ``s`` is a port number 0-65535 without leading zeros."""
    if len(s) > 1 and s[0] == "0":
        return False
    if not _PORT_DIGITS.fullmatch(s):
        return False
    return 0 <= int(s) <= 65535