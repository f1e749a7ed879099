# nodestats

`nodestats` turns the statistics a Linux kernel publishes under `/proc` and
`/sys` into named metrics with labels. Some modules read the live files
through a collector class; others only build metrics from data you hand them.

## What it covers

| Module | What it does |
| --- | --- |
| `nodestats.metrics` | `Metric`, `ValueType`, `NoDataError`, `build_fq_name`, `push_metric` |
| `nodestats.paths` | Where procfs, sysfs and the root filesystem are mounted (`Paths`) |
| `nodestats.netdev_filter` | Include/exclude regular expressions for device names (`NetDevFilter`) |
| `nodestats.netdev` | Parses `/proc/net/dev` (`parse_net_dev_stats`, `get_net_dev_stats`); `NetDevCollector` emits per-device counters and, optionally, interface address info |
| `nodestats.netclass` | Reads `/sys/class/net/<iface>` (`read_interface_class`, `net_class_metrics`, `NetClassCollector`) |
| `nodestats.netstat` | Parses `/proc/net/netstat`, `snmp` and `snmp6` (`parse_net_stats`, `parse_snmp6_stats`, `NetStatCollector`) |
| `nodestats.os_release` | Parses `os-release` files (`parse_os_release`, `OSReleaseCollector`) |
| `nodestats.network_route` | Builds route metrics from `Route`/`NextHop` values (`route_metrics`, `protocol_to_string`) |
| `nodestats.perf` | Parses perf CPU lists and tracepoint options; builds tracepoint metrics (`tracepoint_metrics`) |
| `nodestats.perf_metrics` | Builds metrics from `HardwareProfile`, `SoftwareProfile` and `CacheProfile` readings |
| `nodestats.pressure` | Parses `/proc/pressure/*` (`parse_psi_stats`, `PressureStatsCollector`) |
| `nodestats.nfsd` | Builds NFS server metrics from a `ServerRPCStats` value (`nfsd_metrics`) |

Every collector's `update()` returns a list of `nodestats.metrics.Metric`
values, each with a `name`, `help`, `value_type` (`ValueType.COUNTER`,
`GAUGE` or `UNTYPED`), a float `value` and a `labels` dict. Metric names are
built with `build_fq_name`, which joins namespace (`node`), subsystem and name
with underscores and leaves out empty parts. `NetClassCollector`,
`OSReleaseCollector` and `PressureStatsCollector` raise `NoDataError` when the
files they need are missing, for example when the kernel has no pressure
stall support.

## Examples

Parse a captured `/proc/net/dev` and leave out virtual Ethernet pairs:

```python
from nodestats.netdev import parse_net_dev_stats
from nodestats.netdev_filter import NetDevFilter

device_filter = NetDevFilter("^veth", "")
with open("/proc/net/dev", encoding="utf-8") as stream:
    stats = parse_net_dev_stats(stream, device_filter)

print(stats["eth0"]["receive_bytes"])
```

A filter with only an accept pattern ignores every device that does not match
it:

```python
from nodestats.netdev_filter import NetDevFilter

only_eth0 = NetDevFilter("", "^eth0$")
only_eth0.ignored("eth0")   # False
only_eth0.ignored("wlan0")  # True
```

Collect counters from a different proc mount:

```python
from nodestats.netdev import NetDevCollector
from nodestats.paths import Paths

collector = NetDevCollector(Paths(proc_path="/host/proc"), device_exclude="^lo$")
for metric in collector.update():
    print(metric.name, metric.labels["device"], metric.value)
```

Read distribution details from an `os-release` file:

```python
from nodestats.os_release import parse_os_release

with open("/etc/os-release", encoding="utf-8") as stream:
    release = parse_os_release(stream)
print(release.pretty_name)
```

Expand a perf CPU list, with ranges and strides:

```python
from nodestats.perf import perf_cpu_flag_to_cpus, perf_tracepoint_flag_to_tracepoints

perf_cpu_flag_to_cpus("1-5")       # [1, 2, 3, 4, 5]
perf_cpu_flag_to_cpus("10-20:5")   # [10, 15, 20]

(tracepoint,) = perf_tracepoint_flag_to_tracepoints(["sched:sched_process_fork"])
tracepoint.label()       # "sched_sched_process_fork"
tracepoint.tracepoint()  # "sched:sched_process_fork"
```

Name routing protocols the way the kernel numbers them:

```python
from nodestats.network_route import protocol_to_string

protocol_to_string(2)    # "kernel"
protocol_to_string(186)  # "bgp"
protocol_to_string(99)   # "unknown"
```

## Paths

`NetDevCollector`, `NetClassCollector` and `NetStatCollector` take their mount
points from a `Paths` object (defaults `/proc`, `/sys` and `/`), so they can be
pointed at a container's host mounts or at a directory of captured fixtures.
`Paths.proc_file_path`, `Paths.sys_file_path` and `Paths.rootfs_file_path`
join and clean a relative name against the configured mount point;
`Paths.rootfs_strip_prefix` removes the root filesystem prefix from a path.
`OSReleaseCollector` takes a `rootfs_path` string and `PressureStatsCollector`
a `proc_path` string instead.

## What it does not do

- It does not serve metrics over HTTP or render them in any exposition
  format; it only returns `Metric` values.
- It has no command-line program.
- It does not read the routing table itself: `route_metrics` works on
  `Route` values and an interface-index-to-name mapping that the caller
  supplies.
- It does not open perf counters: `hardware_metrics`, `software_metrics`,
  `cache_metrics` and `tracepoint_metrics` work on readings the caller
  supplies.
- It does not parse `/proc/net/rpc/nfsd`: `nfsd_metrics` works on a
  `ServerRPCStats` value the caller fills in.

## Requirements

Python 3.10 or later on Linux. `psutil` is used by `NetDevCollector` to list
interface addresses when `address_info=True`.