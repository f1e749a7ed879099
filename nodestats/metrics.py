"""Metric samples and the helpers collectors use to build them."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

NAMESPACE = "node"


class ValueType(enum.Enum):
    """Kind of a metric sample."""

    COUNTER = "counter"
    GAUGE = "gauge"
    UNTYPED = "untyped"


@dataclass(frozen=True)
class Metric:
    """A single constant metric sample."""

    name: str
    help: str
    value_type: ValueType
    value: float
    labels: dict[str, str] = field(default_factory=dict)


class NoDataError(Exception):
    """Raised by a collector when there is nothing to report on this host."""


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty parts of a metric name with underscores.

    An empty ``name`` yields an empty result.
    """
    if not name:
        return ""
    return "_".join(part for part in (namespace, subsystem, name) if part)


def push_metric(
    subsystem: str,
    name: str,
    value: int,
    iface_name: str,
    value_type: ValueType,
) -> Metric:
    """Build a per-device metric for a value read from /sys/class/net."""
    return Metric(
        name=build_fq_name(NAMESPACE, subsystem, name),
        help=f"{name} value of /sys/class/net/<iface>.",
        value_type=value_type,
        value=float(value),
        labels={"device": iface_name},
    )