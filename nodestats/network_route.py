"""Routing table metrics."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from nodestats.metrics import NAMESPACE, Metric, ValueType, build_fq_name

SUBSYSTEM = "network"

# Routes whose type equals this value are reported.
ROUTE_TYPE_REPORTED = 1

_PROTOCOLS = {
    0: "unspec",
    1: "redirect",
    2: "kernel",
    3: "boot",
    4: "static",
    8: "gated",
    9: "ra",
    10: "mrt",
    11: "zebra",
    12: "bird",
    13: "dnrouted",
    14: "xorp",
    15: "ntk",
    16: "dhcp",
    17: "mrouted",
    42: "babel",
    186: "bgp",
    187: "isis",
    188: "ospf",
    189: "rip",
    192: "eigrp",
}

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
IPLike = str | bytes | IPAddress | None


def _to_address(ip: IPLike) -> IPAddress | None:
    if ip is None or ip == "" or ip == b"":
        return None
    if isinstance(ip, bytes):
        if len(ip) not in (4, 16):
            raise ValueError(f"invalid IP address length: {len(ip)}")
        addr: IPAddress = ipaddress.ip_address(ip)
    elif isinstance(ip, str):
        addr = ipaddress.ip_address(ip)
    else:
        addr = ip
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


@dataclass(frozen=True)
class NextHop:
    """One path of a multipath route."""

    if_index: int
    hops: int = 0
    gateway: IPLike = None


@dataclass(frozen=True)
class Route:
    """A routing table entry."""

    type: int = ROUTE_TYPE_REPORTED
    protocol: int = 0
    dst_length: int = 0
    src: IPLike = None
    dst: IPLike = None
    gateway: IPLike = None
    priority: int = 0
    out_iface: int = 0
    multipath: list[NextHop] = field(default_factory=list)


def ip_with_prefix_to_string(ip: IPLike, prefix_length: int) -> str:
    """Render a destination as ``address/prefix``, or ``default`` for a zero prefix."""
    if prefix_length == 0:
        return "default"
    addr = _to_address(ip)
    if addr is None:
        return "<nil>"
    return f"{addr}/{prefix_length}"


def ip_to_string(ip: IPLike) -> str:
    """Render an address, or an empty string when there is none."""
    addr = _to_address(ip)
    return "" if addr is None else str(addr)


def protocol_to_string(protocol: int) -> str:
    """Name of a routing protocol number."""
    return _PROTOCOLS.get(protocol, "unknown")


def route_metrics(routes: Iterable[Route], links: Mapping[int, str]) -> list[Metric]:
    """Build route info metrics and per-device route counts.

    ``links`` maps interface indexes to interface names.
    """
    info_name = build_fq_name(NAMESPACE, SUBSYSTEM, "route_info")
    info_help = "network routing table information"
    metrics: list[Metric] = []
    device_routes: dict[str, int] = {}

    def add(device: str, route: Route, gateway: IPLike, weight: str) -> None:
        metrics.append(
            Metric(
                name=info_name,
                help=info_help,
                value_type=ValueType.GAUGE,
                value=1.0,
                labels={
                    "device": device,
                    "src": ip_to_string(route.src),
                    "dest": ip_with_prefix_to_string(route.dst, route.dst_length),
                    "gw": ip_to_string(gateway),
                    "priority": str(route.priority),
                    "proto": protocol_to_string(route.protocol),
                    "weight": weight,
                },
            )
        )
        device_routes[device] = device_routes.get(device, 0) + 1

    for route in routes:
        if route.type != ROUTE_TYPE_REPORTED:
            continue
        if route.multipath:
            for next_hop in route.multipath:
                device = links.get(next_hop.if_index, "")
                add(device, route, next_hop.gateway, str(next_hop.hops + 1))
        else:
            add(links.get(route.out_iface, ""), route, route.gateway, "")

    routes_name = build_fq_name(NAMESPACE, SUBSYSTEM, "routes")
    for device, total in device_routes.items():
        metrics.append(
            Metric(
                name=routes_name,
                help="network routes by interface",
                value_type=ValueType.GAUGE,
                value=float(total),
                labels={"device": device},
            )
        )
    return metrics