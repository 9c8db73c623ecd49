"""Listing of bindable local IPv4 addresses, with a short-lived cache."""

from __future__ import annotations

import ipaddress
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

import psutil

_DEFAULT_TTL = 15.0


@dataclass
class LocalAddrListerOptions:
    """Cache lifetime and address filters; ``only_ipv4`` is always forced on."""

    ttl: float = _DEFAULT_TTL
    include_loopback: bool = False
    include_link_local: bool = False
    require_interface_up: bool = False
    only_ipv4: bool = True

    def __post_init__(self) -> None:
        if self.ttl <= 0:
            self.ttl = _DEFAULT_TTL
        self.only_ipv4 = True


@dataclass(frozen=True)
class NetIfAddr:
    """One address of an interface."""

    family: str
    addr: str
    scope: str


@dataclass(frozen=True)
class NetInterface:
    """An interface and its usable addresses."""

    name: str
    index: int
    mac: str
    mtu: int
    addrs: tuple[NetIfAddr, ...] = field(default_factory=tuple)


@dataclass(frozen=True, order=True)
class IPv4Address:
    """An interface name paired with one of its IPv4 addresses."""

    iface: str
    localaddr: str

    def to_dict(self) -> dict[str, str]:
        return {"iface": self.iface, "localaddr": self.localaddr}


def _as_ip(ip: str | ipaddress.IPv4Address | ipaddress.IPv6Address):
    if isinstance(ip, str):
        ip = ipaddress.ip_address(ip.split("%", 1)[0])
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def classify_scope(ip: str | ipaddress.IPv4Address | ipaddress.IPv6Address) -> str:
    """Return "loopback", "link" or "global" for an IP address."""
    ip = _as_ip(ip)
    if ip.is_loopback:
        return "loopback"
    if isinstance(ip, ipaddress.IPv4Address):
        return "link" if ip.packed[:2] == b"\xa9\xfe" else "global"
    return "link" if str(ip).startswith("fe80:") else "global"


def _interface_index(name: str) -> int:
    try:
        return socket.if_nametoindex(name)
    except (OSError, AttributeError):
        return 0


def list_interfaces(opts: LocalAddrListerOptions) -> list[NetInterface]:
    """Return interfaces with at least one address passing ``opts``, sorted by name."""
    all_addrs = psutil.net_if_addrs()
    stats = psutil.net_if_stats()
    out = []
    for name, addrs in all_addrs.items():
        stat = stats.get(name)
        if opts.require_interface_up and not (stat is not None and stat.isup):
            continue
        mac = ""
        ips = []
        for entry in addrs:
            if entry.family == psutil.AF_LINK:
                mac = entry.address.replace("-", ":").lower()
                continue
            if entry.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            try:
                ip = _as_ip(entry.address)
            except ValueError:
                continue
            family = "ipv4" if isinstance(ip, ipaddress.IPv4Address) else "ipv6"
            if opts.only_ipv4 and family != "ipv4":
                continue
            scope = classify_scope(ip)
            if scope == "loopback" and not opts.include_loopback:
                continue
            if scope == "link" and not opts.include_link_local:
                continue
            ips.append(NetIfAddr(family=family, addr=str(ip), scope=scope))
        if not ips:
            continue
        out.append(
            NetInterface(
                name=name,
                index=_interface_index(name),
                mac=mac,
                mtu=stat.mtu if stat is not None else 0,
                addrs=tuple(ips),
            )
        )
    out.sort(key=lambda iface: iface.name)
    return out


def flatten_ipv4(ifaces: list[NetInterface]) -> list[IPv4Address]:
    """Flatten interfaces into (iface, address) pairs, sorted by interface then address."""
    return sorted(
        IPv4Address(iface=iface.name, localaddr=addr.addr)
        for iface in ifaces
        for addr in iface.addrs
        if addr.family == "ipv4"
    )


class LocalAddrLister:
    """Cached listing of local IPv4 addresses."""

    def __init__(
        self,
        options: LocalAddrListerOptions | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        source: Callable[[LocalAddrListerOptions], list[NetInterface]] = list_interfaces,
    ) -> None:
        self.options = options or LocalAddrListerOptions()
        self._clock = clock
        self._source = source
        self._lock = threading.Lock()
        self._cache: list[IPv4Address] = []
        self._expires = 0.0

    def invalidate(self) -> None:
        """Drop the cache so the next call lists interfaces again."""
        with self._lock:
            self._cache = []
            self._expires = 0.0

    def get_local_addrs(self) -> list[IPv4Address]:
        """Return the IPv4 addresses, from cache while it is fresh."""
        with self._lock:
            if self._cache and self._clock() < self._expires:
                return list(self._cache)
            try:
                ifaces = self._source(self.options)
            except OSError as exc:
                raise OSError(f"list interfaces: {exc}") from exc
            self._cache = flatten_ipv4(ifaces)
            self._expires = self._clock() + self.options.ttl
            return list(self._cache)