import pytest

from nodestats.metrics import ValueType
from nodestats.perf import (
    PerfTracepoint,
    perf_cpu_flag_to_cpus,
    perf_tracepoint_flag_to_tracepoints,
    tracepoint_metrics,
)


@pytest.mark.parametrize(
    "flag, expected",
    [
        ("1", [1]),
        ("1-5", [1, 2, 3, 4, 5]),
        ("10", [10]),
        ("10-12", [10, 11, 12]),
        ("10-20:5", [10, 15, 20]),
        ("1-8:2", [1, 3, 5, 7]),
        ("0,2-3", [0, 2, 3]),
    ],
)
def test_perf_cpu_flag_to_cpus(flag, expected):
    assert perf_cpu_flag_to_cpus(flag) == expected


@pytest.mark.parametrize("flag", ["", "a", "1-b", "1-2-3", "1-4:x", "1:2"])
def test_perf_cpu_flag_to_cpus_invalid(flag):
    with pytest.raises(ValueError):
        perf_cpu_flag_to_cpus(flag)


def test_perf_cpu_flag_empty_range():
    assert perf_cpu_flag_to_cpus("5-3") == []


@pytest.mark.parametrize(
    "flag, expected",
    [
        (
            ["sched:sched_kthread_stop"],
            [PerfTracepoint("sched", "sched_kthread_stop")],
        ),
        (
            ["sched:sched_kthread_stop", "sched:sched_process_fork"],
            [
                PerfTracepoint("sched", "sched_kthread_stop"),
                PerfTracepoint("sched", "sched_process_fork"),
            ],
        ),
        ([], []),
    ],
)
def test_perf_tracepoint_flag_to_tracepoints(flag, expected):
    assert perf_tracepoint_flag_to_tracepoints(flag) == expected


@pytest.mark.parametrize("flag", ["sched", "a:b:c"])
def test_perf_tracepoint_flag_invalid(flag):
    with pytest.raises(ValueError, match="Invalid tracepoint config"):
        perf_tracepoint_flag_to_tracepoints([flag])


def test_tracepoint_names():
    tracepoint = PerfTracepoint("sched", "sched_process_fork")
    assert tracepoint.label() == "sched_sched_process_fork"
    assert tracepoint.tracepoint() == "sched:sched_process_fork"


def test_tracepoint_metrics():
    order = ["sched:sched_kthread_stop", "irq:irq_handler_entry"]
    metrics = tracepoint_metrics(order, 3, [7, 11])
    assert [m.name for m in metrics] == [
        "node_perf_sched_sched_kthread_stop",
        "node_perf_irq_irq_handler_entry",
    ]
    assert [m.value for m in metrics] == [7.0, 11.0]
    assert all(m.labels == {"cpu": "3"} for m in metrics)
    assert all(m.value_type is ValueType.COUNTER for m in metrics)
    assert metrics[0].help == "Perf tracepoint sched:sched_kthread_stop"


def test_tracepoint_metrics_too_many_values():
    with pytest.raises(IndexError):
        tracepoint_metrics(["sched:sched_kthread_stop"], 0, [1, 2])