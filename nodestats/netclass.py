"""Network interface attributes read from /sys/class/net."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass

from nodestats.metrics import (
    NAMESPACE,
    Metric,
    NoDataError,
    ValueType,
    build_fq_name,
    push_metric,
)
from nodestats.paths import Paths

logger = logging.getLogger(__name__)

SUBSYSTEM = "network"

_STRING_ATTRIBUTES = {
    "address": "address",
    "broadcast": "broadcast",
    "duplex": "duplex",
    "ifalias": "ifalias",
    "operstate": "operstate",
}

_INT_ATTRIBUTES = {
    "addr_assign_type": "addr_assign_type",
    "carrier": "carrier",
    "carrier_changes": "carrier_changes",
    "carrier_up_count": "carrier_up_count",
    "carrier_down_count": "carrier_down_count",
    "dev_id": "dev_id",
    "dormant": "dormant",
    "flags": "flags",
    "ifindex": "ifindex",
    "iflink": "iflink",
    "link_mode": "link_mode",
    "mtu": "mtu",
    "name_assign_type": "name_assign_type",
    "netdev_group": "netdev_group",
    "speed": "speed",
    "tx_queue_len": "tx_queue_len",
    "type": "type",
}

# Attribute, metric name and kind, in the order the metrics are emitted.
_NUMERIC_METRICS = (
    ("addr_assign_type", "address_assign_type", ValueType.GAUGE),
    ("carrier", "carrier", ValueType.GAUGE),
    ("carrier_changes", "carrier_changes_total", ValueType.COUNTER),
    ("carrier_up_count", "carrier_up_changes_total", ValueType.COUNTER),
    ("carrier_down_count", "carrier_down_changes_total", ValueType.COUNTER),
    ("dev_id", "device_id", ValueType.GAUGE),
    ("dormant", "dormant", ValueType.GAUGE),
    ("flags", "flags", ValueType.GAUGE),
    ("ifindex", "iface_id", ValueType.GAUGE),
    ("iflink", "iface_link", ValueType.GAUGE),
    ("link_mode", "iface_link_mode", ValueType.GAUGE),
    ("mtu", "mtu_bytes", ValueType.GAUGE),
    ("name_assign_type", "name_assign_type", ValueType.GAUGE),
    ("netdev_group", "net_dev_group", ValueType.GAUGE),
)

_TRAILING_METRICS = (
    ("tx_queue_len", "transmit_queue_length", ValueType.GAUGE),
    ("type", "protocol_type", ValueType.GAUGE),
)


@dataclass
class InterfaceClass:
    """Attributes of one network interface; missing ones are ``None``."""

    name: str
    address: str = ""
    broadcast: str = ""
    duplex: str = ""
    ifalias: str = ""
    operstate: str = ""
    addr_assign_type: int | None = None
    carrier: int | None = None
    carrier_changes: int | None = None
    carrier_up_count: int | None = None
    carrier_down_count: int | None = None
    dev_id: int | None = None
    dormant: int | None = None
    flags: int | None = None
    ifindex: int | None = None
    iflink: int | None = None
    link_mode: int | None = None
    mtu: int | None = None
    name_assign_type: int | None = None
    netdev_group: int | None = None
    speed: int | None = None
    tx_queue_len: int | None = None
    type: int | None = None


def _parse_int(text: str) -> int:
    if re.fullmatch(r"[+-]?0[xX][0-9a-fA-F]+", text):
        return int(text, 16)
    return int(text, 10)


def _read_attribute(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8", errors="replace") as stream:
            return stream.read().strip()
    except OSError:
        # Some attributes cannot be read while the link is down.
        return None


def read_interface_class(device_dir: str, name: str) -> InterfaceClass:
    """Read the attributes of interface ``name`` from its sysfs directory."""
    if not os.path.isdir(device_dir):
        raise FileNotFoundError(device_dir)
    iface = InterfaceClass(name=name)
    for file_name, attr in _STRING_ATTRIBUTES.items():
        value = _read_attribute(os.path.join(device_dir, file_name))
        if value is not None:
            setattr(iface, attr, value)
    for file_name, attr in _INT_ATTRIBUTES.items():
        value = _read_attribute(os.path.join(device_dir, file_name))
        if value is None or value == "":
            continue
        try:
            setattr(iface, attr, _parse_int(value))
        except ValueError as exc:
            raise ValueError(f"invalid value {value!r} in {file_name} of {name}") from exc
    return iface


def net_class_metrics(iface: InterfaceClass, ignore_invalid_speed: bool = False) -> list[Metric]:
    """Build the metrics describing one interface."""
    metrics = [
        Metric(
            name=build_fq_name(NAMESPACE, SUBSYSTEM, "up"),
            help="Value is 1 if operstate is 'up', 0 otherwise.",
            value_type=ValueType.GAUGE,
            value=1.0 if iface.operstate == "up" else 0.0,
            labels={"device": iface.name},
        ),
        Metric(
            name=build_fq_name(NAMESPACE, SUBSYSTEM, "info"),
            help="Non-numeric data from /sys/class/net/<iface>, value is always 1.",
            value_type=ValueType.GAUGE,
            value=1.0,
            labels={
                "device": iface.name,
                "address": iface.address,
                "broadcast": iface.broadcast,
                "duplex": iface.duplex,
                "operstate": iface.operstate,
                "ifalias": iface.ifalias,
            },
        ),
    ]

    for attr, metric_name, value_type in _NUMERIC_METRICS:
        value = getattr(iface, attr)
        if value is not None:
            metrics.append(push_metric(SUBSYSTEM, metric_name, value, iface.name, value_type))

    if iface.speed is not None:
        # Some devices report -1 when the speed is unknown.
        if iface.speed >= 0 or not ignore_invalid_speed:
            speed_bytes = iface.speed * 125_000
            metrics.append(
                push_metric(SUBSYSTEM, "speed_bytes", speed_bytes, iface.name, ValueType.GAUGE)
            )

    for attr, metric_name, value_type in _TRAILING_METRICS:
        value = getattr(iface, attr)
        if value is not None:
            metrics.append(push_metric(SUBSYSTEM, metric_name, value, iface.name, value_type))
    return metrics


class NetClassCollector:
    """Exposes network interface attributes from /sys/class/net."""

    subsystem = SUBSYSTEM

    def __init__(
        self,
        paths: Paths | None = None,
        ignored_devices: str = "^$",
        ignore_invalid_speed: bool = False,
    ) -> None:
        self.paths = paths or Paths()
        self.ignored_devices_pattern = re.compile(ignored_devices)
        self.ignore_invalid_speed = ignore_invalid_speed

    def _net_class_info(self) -> dict[str, InterfaceClass]:
        base = self.paths.sys_file_path("class/net")
        result: dict[str, InterfaceClass] = {}
        for device in sorted(os.listdir(base)):
            if self.ignored_devices_pattern.search(device):
                continue
            result[device] = read_interface_class(os.path.join(base, device), device)
        return result

    def update(self) -> list[Metric]:
        """Collect metrics for every interface not ignored."""
        try:
            net_class = self._net_class_info()
        except (FileNotFoundError, PermissionError) as exc:
            logger.debug("Could not read netclass file: %s", exc)
            raise NoDataError(str(exc)) from exc
        metrics: list[Metric] = []
        for iface in net_class.values():
            metrics.extend(net_class_metrics(iface, self.ignore_invalid_speed))
        return metrics