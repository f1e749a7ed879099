"""Perf tracepoint configuration and tracepoint metrics."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from nodestats.metrics import NAMESPACE, Metric, ValueType, build_fq_name

SUBSYSTEM = "perf"

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _atoi(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


@dataclass(frozen=True)
class PerfTracepoint:
    """A kernel tracepoint given as a subsystem and an event."""

    subsystem: str
    event: str

    def label(self) -> str:
        """Tracepoint name in the form ``subsystem_event``."""
        return f"{self.subsystem}_{self.event}"

    def tracepoint(self) -> str:
        """Tracepoint name in the form ``subsystem:event``."""
        return f"{self.subsystem}:{self.event}"


def perf_tracepoint_flag_to_tracepoints(tracepoints_flag: Iterable[str]) -> list[PerfTracepoint]:
    """Turn ``subsystem:event`` strings into tracepoints."""
    tracepoints: list[PerfTracepoint] = []
    for tracepoint in tracepoints_flag:
        split = tracepoint.split(":")
        if len(split) != 2:
            raise ValueError(f"Invalid tracepoint config {tracepoint}")
        tracepoints.append(PerfTracepoint(subsystem=split[0], event=split[1]))
    return tracepoints


def perf_cpu_flag_to_cpus(cpu_flag: str) -> list[int]:
    """Expand a CPU list such as ``1,3-5,10-20:5`` into CPU numbers."""
    cpus: list[int] = []
    for subset in cpu_flag.split(","):
        if "-" not in subset:
            cpus.append(_atoi(subset))
            continue

        stride = 1
        stride_set = subset.split(":")
        if len(stride_set) == 2:
            stride = _atoi(stride_set[1])
            if stride <= 0:
                raise ValueError(f"invalid stride in flag value {cpu_flag!r}")

        range_set = stride_set[0].split("-")
        if len(range_set) != 2:
            raise ValueError(f"invalid flag value {cpu_flag!r}")
        start = _atoi(range_set[0])
        end = _atoi(range_set[1])
        cpus.extend(range(start, end + 1, stride))
    return cpus


def tracepoint_metrics(
    collection_order: Sequence[str], cpu: int, values: Iterable[int]
) -> list[Metric]:
    """Build counter metrics for one CPU's tracepoint group values.

    ``collection_order`` lists the ``subsystem:event`` names in the order
    the values were read.
    """
    cpu_id = str(cpu)
    metrics: list[Metric] = []
    for index, value in enumerate(values):
        if index >= len(collection_order):
            raise IndexError(f"no tracepoint configured for value {index}")
        subsystem, _, event = collection_order[index].partition(":")
        tracepoint = PerfTracepoint(subsystem, event)
        metrics.append(
            Metric(
                name=build_fq_name(NAMESPACE, SUBSYSTEM, tracepoint.label()),
                help=f"Perf tracepoint {tracepoint.tracepoint()}",
                value_type=ValueType.COUNTER,
                value=float(value),
                labels={"cpu": cpu_id},
            )
        )
    return metrics