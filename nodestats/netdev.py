"""Network device statistics from /proc/net/dev."""

from __future__ import annotations

import ipaddress
import logging
import re
import socket
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

import psutil

from nodestats.metrics import NAMESPACE, Metric, ValueType, build_fq_name
from nodestats.netdev_filter import NetDevFilter
from nodestats.paths import Paths

logger = logging.getLogger(__name__)

NetDevStats = dict[str, dict[str, int]]

_INTERFACE_RE = re.compile(r"(.+): *(.+)")
_FIELD_SEP = re.compile(r" +")
_MAX_UINT64 = (1 << 64) - 1

_UINT_SYNTAX = {
    "0x": (16, re.compile(r"[0-9a-fA-F]+")),
    "0X": (16, re.compile(r"[0-9a-fA-F]+")),
    "0b": (2, re.compile(r"[01]+")),
    "0B": (2, re.compile(r"[01]+")),
    "0o": (8, re.compile(r"[0-7]+")),
    "0O": (8, re.compile(r"[0-7]+")),
}
_DECIMAL = re.compile(r"[0-9]+")
_OCTAL = re.compile(r"[0-7]+")


def _parse_uint(text: str) -> int:
    """Parse an unsigned 64-bit integer, inferring the base from its prefix."""
    base, digits, syntax = 10, text, _DECIMAL
    prefix = text[:2]
    if prefix in _UINT_SYNTAX:
        base, syntax = _UINT_SYNTAX[prefix]
        digits = text[2:]
    elif len(text) > 1 and text.startswith("0"):
        base, syntax, digits = 8, _OCTAL, text[1:]
    if not syntax.fullmatch(digits):
        raise ValueError(f"invalid syntax: {text!r}")
    value = int(digits, base)
    if value > _MAX_UINT64:
        raise ValueError(f"value out of range: {text!r}")
    return value


def _lines(stream: Iterable[str]) -> Iterator[str]:
    for raw in stream:
        line = raw[:-1] if raw.endswith("\n") else raw
        if line.endswith("\r"):
            line = line[:-1]
        yield line


def parse_net_dev_stats(stream: Iterable[str], device_filter: NetDevFilter) -> NetDevStats:
    """Parse the contents of /proc/net/dev into per-device counters."""
    lines = _lines(stream)
    next(lines, None)
    header = next(lines, "")
    parts = header.split("|")
    if len(parts) != 3:
        raise ValueError(f"invalid header line in net/dev: {header}")

    receive_header = parts[1].split()
    transmit_header = parts[2].split()
    header_length = len(receive_header) + len(transmit_header)

    net_dev: NetDevStats = {}
    for raw_line in lines:
        line = raw_line.lstrip(" ")
        match = _INTERFACE_RE.fullmatch(line)
        if match is None:
            raise ValueError(
                f"couldn't get interface name, invalid line in net/dev: {line!r}"
            )
        dev, rest = match.group(1), match.group(2)
        if device_filter.ignored(dev):
            logger.debug("Ignoring device %s", dev)
            continue

        values = _FIELD_SEP.split(rest.lstrip(" "))
        if len(values) != header_length:
            raise ValueError(f"couldn't get values, invalid line in net/dev: {rest!r}")

        keys = [f"receive_{name}" for name in receive_header]
        keys += [f"transmit_{name}" for name in transmit_header]
        dev_stats: dict[str, int] = {}
        for key, value in zip(keys, values):
            try:
                dev_stats[key] = _parse_uint(value)
            except ValueError as exc:
                logger.debug("invalid value in netstats key=%s value=%s: %s", key, value, exc)
        net_dev[dev] = dev_stats
    return net_dev


def get_net_dev_stats(paths: Paths, device_filter: NetDevFilter) -> NetDevStats:
    """Read and parse net/dev below the configured proc mount point."""
    with open(paths.proc_file_path("net/dev"), encoding="utf-8") as stream:
        return parse_net_dev_stats(stream, device_filter)


@dataclass(frozen=True)
class AddrInfo:
    """An address assigned to a network interface."""

    device: str
    addr: str
    scope: str
    netmask: str


IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def _as_ip(ip: str | IPAddress) -> IPAddress:
    addr = ipaddress.ip_address(ip) if isinstance(ip, str) else ip
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


def _is_link_local_unicast(addr: IPAddress) -> bool:
    if addr.version == 4:
        return addr in ipaddress.IPv4Network("169.254.0.0/16")
    packed = addr.packed
    return packed[0] == 0xFE and packed[1] & 0xC0 == 0x80


def _is_link_local_multicast(addr: IPAddress) -> bool:
    if addr.version == 4:
        return addr in ipaddress.IPv4Network("224.0.0.0/24")
    packed = addr.packed
    return packed[0] == 0xFF and packed[1] & 0x0F == 0x02


def _is_interface_local_multicast(addr: IPAddress) -> bool:
    if addr.version == 4:
        return False
    packed = addr.packed
    return packed[0] == 0xFF and packed[1] & 0x0F == 0x01


def _is_global_unicast(addr: IPAddress) -> bool:
    if addr.version == 4 and addr == ipaddress.IPv4Address("255.255.255.255"):
        return False
    return not (
        addr.is_unspecified
        or addr.is_loopback
        or addr.is_multicast
        or _is_link_local_unicast(addr)
    )


def scope(ip: str | IPAddress) -> str:
    """Classify an address as link-local, interface-local, global or none."""
    addr = _as_ip(ip)
    if addr.is_loopback or _is_link_local_unicast(addr) or _is_link_local_multicast(addr):
        return "link-local"
    if _is_interface_local_multicast(addr):
        return "interface-local"
    if _is_global_unicast(addr):
        return "global"
    return ""


def get_addrs_info(interfaces: Mapping[str, Iterable[str]]) -> list[AddrInfo]:
    """Describe every ``address/prefix`` of each interface.

    ``interfaces`` maps an interface name to its addresses in CIDR form;
    entries that are not valid CIDR notation are skipped.
    """
    result: list[AddrInfo] = []
    for name, cidrs in interfaces.items():
        for cidr in cidrs:
            if "/" not in cidr or "%" in cidr:
                continue
            try:
                iface = ipaddress.ip_interface(cidr)
            except ValueError:
                continue
            ip = _as_ip(iface.ip)
            result.append(
                AddrInfo(
                    device=name,
                    addr=str(ip),
                    scope=scope(ip),
                    netmask=str(iface.network.prefixlen),
                )
            )
    return result


def _prefix_length(netmask: str) -> int | None:
    try:
        mask = int(ipaddress.ip_address(netmask))
    except ValueError:
        return None
    return bin(mask).count("1")


def _interface_cidrs() -> dict[str, list[str]]:
    families = {socket.AF_INET, socket.AF_INET6}
    result: dict[str, list[str]] = {}
    for name, addrs in psutil.net_if_addrs().items():
        cidrs = result.setdefault(name, [])
        for addr in addrs:
            if addr.family not in families or not addr.netmask:
                continue
            prefix = _prefix_length(addr.netmask.split("/")[0])
            if prefix is None:
                continue
            address = addr.address.split("%", 1)[0]
            cidrs.append(f"{address}/{prefix}")
    return result


class NetDevCollector:
    """Exposes per-device network counters and optional address info."""

    subsystem = "network"

    def __init__(
        self,
        paths: Paths | None = None,
        device_include: str = "",
        device_exclude: str = "",
        old_device_include: str = "",
        old_device_exclude: str = "",
        address_info: bool = False,
    ) -> None:
        if old_device_include:
            if device_include:
                raise ValueError(
                    "--collector.netdev.device-whitelist and "
                    "--collector.netdev.device-include are mutually exclusive"
                )
            logger.warning(
                "--collector.netdev.device-whitelist is DEPRECATED and will be "
                "removed in 2.0.0, use --collector.netdev.device-include"
            )
            device_include = old_device_include

        if old_device_exclude:
            if device_exclude:
                raise ValueError(
                    "--collector.netdev.device-blacklist and "
                    "--collector.netdev.device-exclude are mutually exclusive"
                )
            logger.warning(
                "--collector.netdev.device-blacklist is DEPRECATED and will be "
                "removed in 2.0.0, use --collector.netdev.device-exclude"
            )
            device_exclude = old_device_exclude

        if device_exclude and device_include:
            raise ValueError("device-exclude & device-include are mutually exclusive")
        if device_exclude:
            logger.info("Parsed flag --collector.netdev.device-exclude: %s", device_exclude)
        if device_include:
            logger.info("Parsed flag --collector.netdev.device-include: %s", device_include)

        self.paths = paths or Paths()
        self.device_filter = NetDevFilter(device_exclude, device_include)
        self.address_info = address_info

    def update(self) -> list[Metric]:
        """Collect the current counters of every accepted device."""
        metrics: list[Metric] = []
        for dev, dev_stats in get_net_dev_stats(self.paths, self.device_filter).items():
            for key, value in dev_stats.items():
                metrics.append(
                    Metric(
                        name=build_fq_name(NAMESPACE, self.subsystem, f"{key}_total"),
                        help=f"Network device statistic {key}.",
                        value_type=ValueType.COUNTER,
                        value=float(value),
                        labels={"device": dev},
                    )
                )
        if self.address_info:
            name = build_fq_name(NAMESPACE, "network_address", "info")
            for info in get_addrs_info(_interface_cidrs()):
                metrics.append(
                    Metric(
                        name=name,
                        help="node network address by device",
                        value_type=ValueType.GAUGE,
                        value=1.0,
                        labels={
                            "device": info.device,
                            "address": info.addr,
                            "netmask": info.netmask,
                            "scope": info.scope,
                        },
                    )
                )
        return metrics