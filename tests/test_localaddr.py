import socket
from collections import namedtuple
from unittest import mock

import psutil
import pytest

from zmux.localaddr import (
    IPv4Address,
    LocalAddrLister,
    LocalAddrListerOptions,
    NetIfAddr,
    NetInterface,
    classify_scope,
    flatten_ipv4,
    list_interfaces,
)

Addr = namedtuple("Addr", "family address netmask broadcast ptp")
Stat = namedtuple("Stat", "isup duplex speed mtu flags")


def v4(address):
    return Addr(socket.AF_INET, address, None, None, None)


def iface(name, *addrs):
    return NetInterface(
        name=name,
        index=0,
        mac="",
        mtu=1500,
        addrs=tuple(NetIfAddr("ipv4", a, "global") for a in addrs),
    )


@pytest.mark.parametrize(
    "ip, scope",
    [
        ("127.0.0.1", "loopback"),
        ("::1", "loopback"),
        ("169.254.3.4", "link"),
        ("fe80::1", "link"),
        ("10.0.0.1", "global"),
        ("2001:db8::1", "global"),
        ("::ffff:127.0.0.1", "loopback"),
    ],
)
def test_classify_scope(ip, scope):
    assert classify_scope(ip) == scope


def test_options_defaults_force_ipv4_and_ttl():
    opts = LocalAddrListerOptions(ttl=0, only_ipv4=False)
    assert opts.ttl == 15
    assert opts.only_ipv4 is True


def test_flatten_sorted_by_iface_then_address():
    result = flatten_ipv4([iface("eth1", "10.0.0.9", "10.0.0.2"), iface("eth0", "192.168.1.5")])
    assert result == sorted(result)
    assert [a.iface for a in result] == ["eth0", "eth1", "eth1"]
    assert {a.localaddr for a in result} == {"10.0.0.9", "10.0.0.2", "192.168.1.5"}


def test_flatten_skips_ipv6():
    ni = NetInterface("eth0", 0, "", 1500, (NetIfAddr("ipv6", "2001:db8::1", "global"),))
    assert flatten_ipv4([ni]) == []


def test_ipv4_address_to_dict():
    assert IPv4Address("eth0", "10.0.0.1").to_dict() == {"iface": "eth0", "localaddr": "10.0.0.1"}


def _patched(addrs, stats):
    return (
        mock.patch("psutil.net_if_addrs", return_value=addrs),
        mock.patch("psutil.net_if_stats", return_value=stats),
    )


def test_list_interfaces_filters_and_sorts():
    addrs = {
        "lo": [v4("127.0.0.1")],
        "eth1": [v4("10.0.0.2"), Addr(socket.AF_INET6, "2001:db8::2", None, None, None)],
        "eth0": [v4("169.254.0.7"), v4("192.168.1.5"), Addr(psutil.AF_LINK, "02-00-00-00-00-01", None, None, None)],
        "down0": [v4("10.9.9.9")],
    }
    stats = {
        "lo": Stat(True, 0, 0, 65536, ""),
        "eth1": Stat(True, 0, 0, 1500, ""),
        "eth0": Stat(True, 0, 0, 9000, ""),
        "down0": Stat(False, 0, 0, 1500, ""),
    }
    p1, p2 = _patched(addrs, stats)
    with p1, p2:
        result = list_interfaces(LocalAddrListerOptions(require_interface_up=True))
    assert [i.name for i in result] == ["eth0", "eth1"]
    assert [a.addr for a in result[0].addrs] == ["192.168.1.5"]
    assert result[0].mac == "02:00:00:00:00:01"
    assert result[0].mtu == 9000
    assert [a.addr for a in result[1].addrs] == ["10.0.0.2"]


def test_list_interfaces_includes_loopback_when_asked():
    p1, p2 = _patched({"lo": [v4("127.0.0.1")]}, {"lo": Stat(True, 0, 0, 65536, "")})
    with p1, p2:
        result = list_interfaces(LocalAddrListerOptions(include_loopback=True))
    assert [(a.addr, a.scope) for a in result[0].addrs] == [("127.0.0.1", "loopback")]


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_lister_caches_until_ttl():
    clock = Clock()
    calls = []

    def source(opts):
        calls.append(opts)
        return [iface("eth0", "10.0.0.1")]

    lister = LocalAddrLister(LocalAddrListerOptions(ttl=5), clock=clock, source=source)
    first = lister.get_local_addrs()
    clock.now = 4.0
    second = lister.get_local_addrs()
    assert first == second == [IPv4Address("eth0", "10.0.0.1")]
    assert len(calls) == 1
    clock.now = 5.0
    lister.get_local_addrs()
    assert len(calls) == 2


def test_lister_returns_copy_and_invalidate_refetches():
    calls = []

    def source(opts):
        calls.append(1)
        return [iface("eth0", "10.0.0.1")]

    lister = LocalAddrLister(clock=Clock(), source=source)
    result = lister.get_local_addrs()
    result.clear()
    assert lister.get_local_addrs() == [IPv4Address("eth0", "10.0.0.1")]
    lister.invalidate()
    lister.get_local_addrs()
    assert len(calls) == 2


def test_lister_wraps_source_errors():
    def source(opts):
        raise OSError("boom")

    lister = LocalAddrLister(source=source)
    with pytest.raises(OSError, match="list interfaces: boom"):
        lister.get_local_addrs()