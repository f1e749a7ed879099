"""Network protocol statistics from /proc/net/netstat, snmp and snmp6."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from nodestats.metrics import NAMESPACE, Metric, ValueType, build_fq_name
from nodestats.paths import Paths

SUBSYSTEM = "netstat"

DEFAULT_FIELDS = (
    "^(.*_(InErrors|InErrs)|Ip_Forwarding|Ip(6|Ext)_(InOctets|OutOctets)|Icmp6?_(InMsgs|OutMsgs)"
    "|TcpExt_(Listen.*|Syncookies.*|TCPSynRetrans|TCPTimeouts)"
    "|Tcp_(ActiveOpens|InSegs|OutSegs|OutRsts|PassiveOpens|RetransSegs|CurrEstab)"
    "|Udp6?_(InDatagrams|OutDatagrams|NoPorts|RcvbufErrors|SndbufErrors))$"
)

NetStats = dict[str, dict[str, str]]


def _lines(stream: Iterable[str]) -> Iterator[str]:
    for raw in stream:
        line = raw[:-1] if raw.endswith("\n") else raw
        yield line[:-1] if line.endswith("\r") else line


def parse_net_stats(stream: Iterable[str], file_name: str) -> NetStats:
    """Parse the paired header/value lines of net/netstat or net/snmp."""
    net_stats: NetStats = {}
    lines = _lines(stream)
    for name_line in lines:
        value_line = next(lines, "")
        name_parts = name_line.split(" ")
        value_parts = value_line.split(" ")
        if not name_parts[0]:
            raise ValueError(f"missing protocol name in {file_name}")
        protocol = name_parts[0][:-1]
        net_stats[protocol] = {}
        if len(name_parts) != len(value_parts):
            raise ValueError(f"mismatch field count mismatch in {file_name}: {protocol}")
        net_stats[protocol] = dict(zip(name_parts[1:], value_parts[1:]))
    return net_stats


def parse_snmp6_stats(stream: Iterable[str]) -> NetStats:
    """Parse the one-statistic-per-line format of net/snmp6."""
    net_stats: NetStats = {}
    for line in _lines(stream):
        stat = line.split()
        if len(stat) < 2:
            continue
        six_index = stat[0].find("6")
        if six_index == -1:
            continue
        protocol = stat[0][: six_index + 1]
        name = stat[0][six_index + 1 :]
        net_stats.setdefault(protocol, {})[name] = stat[1]
    return net_stats


def get_net_stats(file_name: str) -> NetStats:
    """Read and parse a netstat or snmp file."""
    with open(file_name, encoding="utf-8") as stream:
        return parse_net_stats(stream, file_name)


def get_snmp6_stats(file_name: str) -> NetStats:
    """Read and parse an snmp6 file; a missing file means IPv6 is disabled."""
    try:
        with open(file_name, encoding="utf-8") as stream:
            return parse_snmp6_stats(stream)
    except FileNotFoundError:
        return {}


class NetStatCollector:
    """Exposes selected network protocol counters."""

    def __init__(self, paths: Paths | None = None, fields: str = DEFAULT_FIELDS) -> None:
        self.paths = paths or Paths()
        self.field_pattern = re.compile(fields)

    def update(self) -> list[Metric]:
        """Collect every statistic whose name matches the field pattern."""
        try:
            net_stats = get_net_stats(self.paths.proc_file_path("net/netstat"))
        except (OSError, ValueError) as exc:
            raise type(exc)(f"couldn't get netstats: {exc}") from exc
        try:
            snmp_stats = get_net_stats(self.paths.proc_file_path("net/snmp"))
        except (OSError, ValueError) as exc:
            raise type(exc)(f"couldn't get SNMP stats: {exc}") from exc
        try:
            snmp6_stats = get_snmp6_stats(self.paths.proc_file_path("net/snmp6"))
        except (OSError, ValueError) as exc:
            raise type(exc)(f"couldn't get SNMP6 stats: {exc}") from exc

        net_stats.update(snmp_stats)
        net_stats.update(snmp6_stats)

        metrics: list[Metric] = []
        for protocol, protocol_stats in net_stats.items():
            for name, value in protocol_stats.items():
                key = f"{protocol}_{name}"
                try:
                    number = float(value)
                except ValueError as exc:
                    raise ValueError(f"invalid value {value} in netstats: {exc}") from exc
                if not self.field_pattern.search(key):
                    continue
                metrics.append(
                    Metric(
                        name=build_fq_name(NAMESPACE, SUBSYSTEM, key),
                        help=f"Statistic {protocol}{name}.",
                        value_type=ValueType.UNTYPED,
                        value=number,
                    )
                )
        return metrics