"""Pressure stall information from /proc/pressure."""

from __future__ import annotations

import errno
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass

from nodestats.metrics import NAMESPACE, Metric, NoDataError, ValueType, build_fq_name

logger = logging.getLogger(__name__)

PSI_RESOURCES = ("cpu", "io", "memory")

_UNSUPPORTED = {errno.ENOTSUP, errno.EOPNOTSUPP}


@dataclass(frozen=True)
class PSILine:
    """Averages (percent) and total stall time (microseconds) of one PSI line."""

    avg10: float
    avg60: float
    avg300: float
    total: int


@dataclass(frozen=True)
class PSIStats:
    """The ``some`` and ``full`` lines of a pressure file, when present."""

    some: PSILine | None = None
    full: PSILine | None = None


def _parse_psi_line(fields: list[str], line: str) -> PSILine:
    values: dict[str, str] = {}
    for item in fields:
        key, separator, value = item.partition("=")
        if not separator:
            raise ValueError(f"malformed pressure line: {line!r}")
        values[key] = value
    try:
        return PSILine(
            avg10=float(values["avg10"]),
            avg60=float(values["avg60"]),
            avg300=float(values["avg300"]),
            total=int(values["total"]),
        )
    except (KeyError, ValueError) as exc:
        raise ValueError(f"malformed pressure line: {line!r}") from exc


def parse_psi_stats(stream: Iterable[str]) -> PSIStats:
    """Parse a pressure file; lines with unknown prefixes are ignored."""
    some: PSILine | None = None
    full: PSILine | None = None
    for raw in stream:
        line = raw.strip()
        fields = line.split()
        if not fields:
            continue
        if fields[0] == "some":
            some = _parse_psi_line(fields[1:], line)
        elif fields[0] == "full":
            full = _parse_psi_line(fields[1:], line)
    return PSIStats(some=some, full=full)


def _descriptor(name: str, help_text: str) -> tuple[str, str]:
    return build_fq_name(NAMESPACE, "pressure", name), help_text


_CPU = _descriptor(
    "cpu_waiting_seconds_total", "Total time in seconds that processes have waited for CPU time"
)
_IO = _descriptor(
    "io_waiting_seconds_total",
    "Total time in seconds that processes have waited due to IO congestion",
)
_IO_FULL = _descriptor(
    "io_stalled_seconds_total",
    "Total time in seconds no process could make progress due to IO congestion",
)
_MEM = _descriptor(
    "memory_waiting_seconds_total", "Total time in seconds that processes have waited for memory"
)
_MEM_FULL = _descriptor(
    "memory_stalled_seconds_total",
    "Total time in seconds no process could make progress due to memory congestion",
)

# Resource -> (descriptor for "some", descriptor for "full" or None).
_RESOURCE_METRICS = {
    "cpu": (_CPU, None),
    "io": (_IO, _IO_FULL),
    "memory": (_MEM, _MEM_FULL),
}


def _seconds_metric(descriptor: tuple[str, str], line: PSILine) -> Metric:
    name, help_text = descriptor
    return Metric(
        name=name,
        help=help_text,
        value_type=ValueType.COUNTER,
        value=line.total / 1000.0 / 1000.0,
    )


class PressureStatsCollector:
    """Exposes total stall times for CPU, IO and memory."""

    def __init__(self, proc_path: str = "/proc") -> None:
        self.proc_path = proc_path

    def _read(self, resource: str) -> PSIStats:
        path = os.path.join(self.proc_path, "pressure", resource)
        with open(path, encoding="utf-8") as stream:
            return parse_psi_stats(stream)

    def update(self) -> list[Metric]:
        """Collect pressure metrics for every known resource."""
        metrics: list[Metric] = []
        for resource in PSI_RESOURCES:
            logger.debug("collecting statistics for resource %s", resource)
            try:
                stats = self._read(resource)
            except FileNotFoundError as exc:
                logger.debug(
                    "pressure information is unavailable, you need a Linux kernel >= 4.20 "
                    "and/or CONFIG_PSI enabled for your kernel"
                )
                raise NoDataError(str(exc)) from exc
            except OSError as exc:
                if exc.errno in _UNSUPPORTED:
                    logger.debug(
                        "pressure information is disabled, add psi=1 kernel command line "
                        "to enable it"
                    )
                    raise NoDataError(str(exc)) from exc
                raise OSError(exc.errno, f"failed to retrieve pressure stats: {exc}") from exc
            except ValueError as exc:
                raise ValueError(f"failed to retrieve pressure stats: {exc}") from exc

            some_desc, full_desc = _RESOURCE_METRICS[resource]
            if stats.some is not None:
                metrics.append(_seconds_metric(some_desc, stats.some))
            if full_desc is not None and stats.full is not None:
                metrics.append(_seconds_metric(full_desc, stats.full))
        return metrics