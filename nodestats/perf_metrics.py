"""Hardware, software and cache counters gathered from perf profilers."""

from __future__ import annotations

from dataclasses import dataclass

from nodestats.metrics import NAMESPACE, Metric, ValueType, build_fq_name

SUBSYSTEM = "perf"


@dataclass(frozen=True)
class HardwareProfile:
    """Hardware counter readings of one CPU; unavailable counters are ``None``."""

    cpu_cycles: int | None = None
    instructions: int | None = None
    branch_instr: int | None = None
    branch_misses: int | None = None
    cache_refs: int | None = None
    cache_misses: int | None = None
    ref_cpu_cycles: int | None = None


@dataclass(frozen=True)
class SoftwareProfile:
    """Software counter readings of one CPU; unavailable counters are ``None``."""

    page_faults: int | None = None
    context_switches: int | None = None
    cpu_migrations: int | None = None
    minor_page_faults: int | None = None
    major_page_faults: int | None = None


@dataclass(frozen=True)
class CacheProfile:
    """Cache counter readings of one CPU; unavailable counters are ``None``."""

    l1_data_read_hit: int | None = None
    l1_data_read_miss: int | None = None
    l1_data_write_hit: int | None = None
    l1_instr_read_miss: int | None = None
    instr_tlb_read_hit: int | None = None
    instr_tlb_read_miss: int | None = None
    last_level_read_hit: int | None = None
    last_level_read_miss: int | None = None
    last_level_write_hit: int | None = None
    last_level_write_miss: int | None = None
    bpu_read_hit: int | None = None
    bpu_read_miss: int | None = None


# Profile attribute, metric name and help text, in the order metrics are emitted.
_HARDWARE_FIELDS = (
    ("cpu_cycles", "cpucycles_total", "Number of CPU cycles (frequency scaled)"),
    ("instructions", "instructions_total", "Number of CPU instructions"),
    ("branch_instr", "branch_instructions_total", "Number of CPU branch instructions"),
    ("branch_misses", "branch_misses_total", "Number of CPU branch misses"),
    ("cache_refs", "cache_refs_total", "Number of cache references (non frequency scaled)"),
    ("cache_misses", "cache_misses_total", "Number of cache misses"),
    ("ref_cpu_cycles", "ref_cpucycles_total", "Number of CPU cycles"),
)

_SOFTWARE_FIELDS = (
    ("page_faults", "page_faults_total", "Number of page faults"),
    ("context_switches", "context_switches_total", "Number of context switches"),
    ("cpu_migrations", "cpu_migrations_total", "Number of CPU process migrations"),
    ("minor_page_faults", "minor_faults_total", "Number of minor page faults"),
    ("major_page_faults", "major_faults_total", "Number of major page faults"),
)

_CACHE_FIELDS = (
    ("l1_data_read_hit", "cache_l1d_read_hits_total", "Number L1 data cache read hits"),
    ("l1_data_read_miss", "cache_l1d_read_misses_total", "Number L1 data cache read misses"),
    ("l1_data_write_hit", "cache_l1d_write_hits_total", "Number L1 data cache write hits"),
    (
        "l1_instr_read_miss",
        "cache_l1_instr_read_misses_total",
        "Number instruction L1 instruction read misses",
    ),
    ("instr_tlb_read_hit", "cache_tlb_instr_read_hits_total", "Number instruction TLB read hits"),
    (
        "instr_tlb_read_miss",
        "cache_tlb_instr_read_misses_total",
        "Number instruction TLB read misses",
    ),
    ("last_level_read_hit", "cache_ll_read_hits_total", "Number last level read hits"),
    ("last_level_read_miss", "cache_ll_read_misses_total", "Number last level read misses"),
    ("last_level_write_hit", "cache_ll_write_hits_total", "Number last level write hits"),
    ("last_level_write_miss", "cache_ll_write_misses_total", "Number last level write misses"),
    ("bpu_read_hit", "cache_bpu_read_hits_total", "Number BPU read hits"),
    ("bpu_read_miss", "cache_bpu_read_misses_total", "Number BPU read misses"),
)


def _profile_metrics(cpu: int, profile: object | None, fields) -> list[Metric]:
    if profile is None:
        return []
    cpu_id = str(cpu)
    metrics: list[Metric] = []
    for attr, name, help_text in fields:
        value = getattr(profile, attr)
        if value is None:
            continue
        metrics.append(
            Metric(
                name=build_fq_name(NAMESPACE, SUBSYSTEM, name),
                help=help_text,
                value_type=ValueType.COUNTER,
                value=float(value),
                labels={"cpu": cpu_id},
            )
        )
    return metrics


def hardware_metrics(cpu: int, profile: HardwareProfile | None) -> list[Metric]:
    """Counter metrics for the hardware readings of ``cpu``."""
    return _profile_metrics(cpu, profile, _HARDWARE_FIELDS)


def software_metrics(cpu: int, profile: SoftwareProfile | None) -> list[Metric]:
    """Counter metrics for the software readings of ``cpu``."""
    return _profile_metrics(cpu, profile, _SOFTWARE_FIELDS)


def cache_metrics(cpu: int, profile: CacheProfile | None) -> list[Metric]:
    """Counter metrics for the cache readings of ``cpu``."""
    return _profile_metrics(cpu, profile, _CACHE_FIELDS)