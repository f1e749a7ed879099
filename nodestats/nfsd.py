"""NFS server statistics as reported in /proc/net/rpc/nfsd."""

from __future__ import annotations

from dataclasses import dataclass, field

from nodestats.metrics import NAMESPACE, Metric, ValueType, build_fq_name

SUBSYSTEM = "nfsd"


@dataclass(frozen=True)
class ReplyCache:
    """Reply cache counters."""

    hits: int = 0
    misses: int = 0
    no_cache: int = 0


@dataclass(frozen=True)
class FileHandles:
    """File handle counters; only ``stale`` is maintained by the kernel."""

    stale: int = 0


@dataclass(frozen=True)
class InputOutput:
    """Bytes read from and written to disk."""

    read: int = 0
    write: int = 0


@dataclass(frozen=True)
class Threads:
    """Number of running server threads."""

    threads: int = 0


@dataclass(frozen=True)
class ReadAheadCache:
    """Read ahead cache size and misses."""

    cache_size: int = 0
    not_found: int = 0


@dataclass(frozen=True)
class Network:
    """Packet and connection counters."""

    udp_count: int = 0
    tcp_count: int = 0
    tcp_connect: int = 0


@dataclass(frozen=True)
class ServerRPC:
    """RPC totals and error counters."""

    rpc_count: int = 0
    bad_fmt: int = 0
    bad_auth: int = 0
    badc_int: int = 0


@dataclass(frozen=True)
class V2Stats:
    """NFSv2 procedure counters."""

    get_attr: int = 0
    set_attr: int = 0
    root: int = 0
    lookup: int = 0
    read_link: int = 0
    read: int = 0
    wr_cache: int = 0
    write: int = 0
    create: int = 0
    remove: int = 0
    rename: int = 0
    link: int = 0
    sym_link: int = 0
    mk_dir: int = 0
    rm_dir: int = 0
    read_dir: int = 0
    fs_stat: int = 0


@dataclass(frozen=True)
class V3Stats:
    """NFSv3 procedure counters."""

    get_attr: int = 0
    set_attr: int = 0
    lookup: int = 0
    access: int = 0
    read_link: int = 0
    read: int = 0
    write: int = 0
    create: int = 0
    mk_dir: int = 0
    sym_link: int = 0
    mk_nod: int = 0
    remove: int = 0
    rm_dir: int = 0
    rename: int = 0
    link: int = 0
    read_dir: int = 0
    read_dir_plus: int = 0
    fs_stat: int = 0
    fs_info: int = 0
    path_conf: int = 0
    commit: int = 0


@dataclass(frozen=True)
class V4Ops:
    """NFSv4 operation counters."""

    access: int = 0
    close: int = 0
    commit: int = 0
    create: int = 0
    deleg_purge: int = 0
    deleg_return: int = 0
    get_attr: int = 0
    get_fh: int = 0
    link: int = 0
    lock: int = 0
    lockt: int = 0
    locku: int = 0
    lookup: int = 0
    lookup_root: int = 0
    nverify: int = 0
    open: int = 0
    open_attr: int = 0
    open_confirm: int = 0
    open_dgrd: int = 0
    put_fh: int = 0
    read: int = 0
    read_dir: int = 0
    read_link: int = 0
    remove: int = 0
    rename: int = 0
    renew: int = 0
    restore_fh: int = 0
    save_fh: int = 0
    sec_info: int = 0
    set_attr: int = 0
    verify: int = 0
    write: int = 0
    rel_lock_owner: int = 0


@dataclass(frozen=True)
class ServerRPCStats:
    """All statistics of the NFS server."""

    reply_cache: ReplyCache = field(default_factory=ReplyCache)
    file_handles: FileHandles = field(default_factory=FileHandles)
    input_output: InputOutput = field(default_factory=InputOutput)
    threads: Threads = field(default_factory=Threads)
    read_ahead_cache: ReadAheadCache = field(default_factory=ReadAheadCache)
    network: Network = field(default_factory=Network)
    server_rpc: ServerRPC = field(default_factory=ServerRPC)
    v2_stats: V2Stats = field(default_factory=V2Stats)
    v3_stats: V3Stats = field(default_factory=V3Stats)
    v4_ops: V4Ops = field(default_factory=V4Ops)


# Attribute and method label, in the order the request metrics are emitted.
_V2_METHODS = (
    ("get_attr", "GetAttr"),
    ("set_attr", "SetAttr"),
    ("root", "Root"),
    ("lookup", "Lookup"),
    ("read_link", "ReadLink"),
    ("read", "Read"),
    ("wr_cache", "WrCache"),
    ("write", "Write"),
    ("create", "Create"),
    ("remove", "Remove"),
    ("rename", "Rename"),
    ("link", "Link"),
    ("sym_link", "SymLink"),
    ("mk_dir", "MkDir"),
    ("rm_dir", "RmDir"),
    ("read_dir", "ReadDir"),
    ("fs_stat", "FsStat"),
)

_V3_METHODS = (
    ("get_attr", "GetAttr"),
    ("set_attr", "SetAttr"),
    ("lookup", "Lookup"),
    ("access", "Access"),
    ("read_link", "ReadLink"),
    ("read", "Read"),
    ("write", "Write"),
    ("create", "Create"),
    ("mk_dir", "MkDir"),
    ("sym_link", "SymLink"),
    ("mk_nod", "MkNod"),
    ("remove", "Remove"),
    ("rm_dir", "RmDir"),
    ("rename", "Rename"),
    ("link", "Link"),
    ("read_dir", "ReadDir"),
    ("read_dir_plus", "ReadDirPlus"),
    ("fs_stat", "FsStat"),
    ("fs_info", "FsInfo"),
    ("path_conf", "PathConf"),
    ("commit", "Commit"),
)

_V4_METHODS = (
    ("access", "Access"),
    ("close", "Close"),
    ("commit", "Commit"),
    ("create", "Create"),
    ("deleg_purge", "DelegPurge"),
    ("deleg_return", "DelegReturn"),
    ("get_attr", "GetAttr"),
    ("get_fh", "GetFH"),
    ("link", "Link"),
    ("lock", "Lock"),
    ("lockt", "Lockt"),
    ("locku", "Locku"),
    ("lookup", "Lookup"),
    ("lookup_root", "LookupRoot"),
    ("nverify", "Nverify"),
    ("open", "Open"),
    ("open_attr", "OpenAttr"),
    ("open_confirm", "OpenConfirm"),
    ("open_dgrd", "OpenDgrd"),
    ("put_fh", "PutFH"),
    ("read", "Read"),
    ("read_dir", "ReadDir"),
    ("read_link", "ReadLink"),
    ("remove", "Remove"),
    ("rename", "Rename"),
    ("renew", "Renew"),
    ("restore_fh", "RestoreFH"),
    ("save_fh", "SaveFH"),
    ("sec_info", "SecInfo"),
    ("set_attr", "SetAttr"),
    ("verify", "Verify"),
    ("write", "Write"),
    ("rel_lock_owner", "RelLockOwner"),
)

_REQUESTS_NAME = build_fq_name(NAMESPACE, SUBSYSTEM, "requests_total")
_REQUESTS_HELP = "Total number NFSd Requests by method and protocol."


def _metric(
    name: str,
    help_text: str,
    value: int,
    value_type: ValueType = ValueType.COUNTER,
    labels: dict[str, str] | None = None,
) -> Metric:
    return Metric(
        name=build_fq_name(NAMESPACE, SUBSYSTEM, name),
        help=help_text,
        value_type=value_type,
        value=float(value),
        labels=labels or {},
    )


def _request_metrics(proto: str, stats: object, methods) -> list[Metric]:
    return [
        Metric(
            name=_REQUESTS_NAME,
            help=_REQUESTS_HELP,
            value_type=ValueType.COUNTER,
            value=float(getattr(stats, attr)),
            labels={"proto": proto, "method": method},
        )
        for attr, method in methods
    ]


def nfsd_metrics(stats: ServerRPCStats) -> list[Metric]:
    """Build every NFS server metric from ``stats``."""
    rc = stats.reply_cache
    io = stats.input_output
    ra = stats.read_ahead_cache
    net = stats.network
    rpc = stats.server_rpc

    packets_help = "Total NFSd network packets (sent+received) by protocol type."
    errors_help = "Total number of NFSd RPC errors by error type."

    metrics = [
        _metric(
            "reply_cache_hits_total",
            "Total number of NFSd Reply Cache hits (client lost server response).",
            rc.hits,
        ),
        _metric(
            "reply_cache_misses_total",
            "Total number of NFSd Reply Cache an operation that requires caching (idempotent).",
            rc.misses,
        ),
        _metric(
            "reply_cache_nocache_total",
            "Total number of NFSd Reply Cache non-idempotent operations (rename/delete/…).",
            rc.no_cache,
        ),
        _metric(
            "file_handles_stale_total",
            "Total number of NFSd stale file handles",
            stats.file_handles.stale,
        ),
        _metric("disk_bytes_read_total", "Total NFSd bytes read.", io.read),
        _metric("disk_bytes_written_total", "Total NFSd bytes written.", io.write),
        _metric(
            "server_threads",
            "Total number of NFSd kernel threads that are running.",
            stats.threads.threads,
            ValueType.GAUGE,
        ),
        _metric(
            "read_ahead_cache_size_blocks",
            "How large the read ahead cache is in blocks.",
            ra.cache_size,
            ValueType.GAUGE,
        ),
        _metric(
            "read_ahead_cache_not_found_total",
            "Total number of NFSd read ahead cache not found.",
            ra.not_found,
        ),
        _metric("packets_total", packets_help, net.udp_count, labels={"proto": "udp"}),
        _metric("packets_total", packets_help, net.tcp_count, labels={"proto": "tcp"}),
        _metric(
            "connections_total", "Total number of NFSd TCP connections.", net.tcp_connect
        ),
        _metric("rpc_errors_total", errors_help, rpc.bad_fmt, labels={"error": "fmt"}),
        _metric("rpc_errors_total", errors_help, rpc.bad_auth, labels={"error": "auth"}),
        _metric("rpc_errors_total", errors_help, rpc.badc_int, labels={"error": "cInt"}),
        _metric("server_rpcs_total", "Total number of NFSd RPCs.", rpc.rpc_count),
    ]
    metrics += _request_metrics("2", stats.v2_stats, _V2_METHODS)
    metrics += _request_metrics("3", stats.v3_stats, _V3_METHODS)
    metrics += _request_metrics("4", stats.v4_ops, _V4_METHODS)
    return metrics