import ipaddress

import pytest

from nodestats.network_route import (
    NextHop,
    Route,
    ip_to_string,
    ip_with_prefix_to_string,
    protocol_to_string,
    route_metrics,
)


@pytest.mark.parametrize(
    "number, name",
    [(0, "unspec"), (2, "kernel"), (4, "static"), (16, "dhcp"), (186, "bgp"), (192, "eigrp")],
)
def test_protocol_names(number, name):
    assert protocol_to_string(number) == name


def test_unknown_protocol():
    assert protocol_to_string(250) == "unknown"


def test_zero_prefix_is_default():
    assert ip_with_prefix_to_string("10.0.0.0", 0) == "default"


def test_prefix_string_keeps_address():
    assert ip_with_prefix_to_string("10.1.0.0", 16) == "10.1.0.0/16"
    assert ip_with_prefix_to_string(b"\x0a\x01\x00\x00", 16) == "10.1.0.0/16"


def test_ipv6_prefix_string():
    text = ip_with_prefix_to_string("2001:db8::", 32)
    addr, prefix = text.split("/")
    assert ipaddress.ip_address(addr) == ipaddress.ip_address("2001:db8::")
    assert prefix == "32"


def test_ip_to_string_empty():
    assert ip_to_string(None) == ""
    assert ip_to_string(b"") == ""


def test_ip_to_string_mapped_ipv4():
    assert ip_to_string("::ffff:192.0.2.1") == "192.0.2.1"


def test_invalid_bytes_raise():
    with pytest.raises(ValueError):
        ip_to_string(b"\x01\x02\x03")


def test_single_route_metrics():
    route = Route(
        protocol=4,
        dst_length=24,
        src="192.0.2.10",
        dst="192.0.2.0",
        gateway="192.0.2.1",
        priority=100,
        out_iface=2,
    )
    metrics = route_metrics([route], {1: "lo", 2: "eth0"})
    info = [m for m in metrics if m.name == "node_network_route_info"]
    counts = [m for m in metrics if m.name == "node_network_routes"]
    assert len(info) == 1
    assert info[0].labels == {
        "device": "eth0",
        "src": "192.0.2.10",
        "dest": "192.0.2.0/24",
        "gw": "192.0.2.1",
        "priority": "100",
        "proto": "static",
        "weight": "",
    }
    assert info[0].value == 1.0
    assert [(m.labels["device"], m.value) for m in counts] == [("eth0", 1.0)]


def test_multipath_route_metrics():
    route = Route(
        protocol=186,
        dst_length=0,
        multipath=[
            NextHop(if_index=2, hops=0, gateway="192.0.2.1"),
            NextHop(if_index=3, hops=2, gateway="198.51.100.1"),
        ],
    )
    metrics = route_metrics([route], {2: "eth0", 3: "eth1"})
    info = [m for m in metrics if m.name == "node_network_route_info"]
    assert [m.labels["device"] for m in info] == ["eth0", "eth1"]
    assert [m.labels["gw"] for m in info] == ["192.0.2.1", "198.51.100.1"]
    assert all(m.labels["dest"] == "default" for m in info)
    assert all(m.labels["proto"] == "bgp" for m in info)
    assert info[0].labels["weight"] == "1"
    assert info[1].labels["weight"] == "3"


def test_other_route_types_skipped():
    metrics = route_metrics([Route(type=2, out_iface=1)], {1: "lo"})
    assert metrics == []


def test_counts_per_device_and_unknown_link():
    routes = [Route(out_iface=2), Route(out_iface=2, dst="10.0.0.0", dst_length=8), Route(out_iface=9)]
    metrics = route_metrics(routes, {2: "eth0"})
    counts = {m.labels["device"]: m.value for m in metrics if m.name == "node_network_routes"}
    info_count = sum(1 for m in metrics if m.name == "node_network_route_info")
    assert counts == {"eth0": 2.0, "": 1.0}
    assert sum(counts.values()) == info_count