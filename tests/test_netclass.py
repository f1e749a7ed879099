import pytest

from nodestats.metrics import NoDataError, ValueType
from nodestats.netclass import (
    InterfaceClass,
    NetClassCollector,
    net_class_metrics,
    read_interface_class,
)
from nodestats.paths import Paths

ETH0 = {
    "address": "02:00:00:00:00:01",
    "broadcast": "ff:ff:ff:ff:ff:ff",
    "duplex": "full",
    "ifalias": "uplink",
    "operstate": "up",
    "carrier": "1",
    "carrier_changes": "2",
    "flags": "0x1003",
    "ifindex": "2",
    "mtu": "1500",
    "speed": "1000",
    "tx_queue_len": "1000",
    "type": "1",
}


def _make_device(root, name, attributes):
    device = root / "class" / "net" / name
    device.mkdir(parents=True)
    for key, value in attributes.items():
        (device / key).write_text(value + "\n")
    return device


def _by_name(metrics):
    return {m.name: m for m in metrics}


def test_read_interface_class(tmp_path):
    device = _make_device(tmp_path, "eth0", ETH0)
    iface = read_interface_class(str(device), "eth0")
    assert iface.name == "eth0"
    assert iface.address == "02:00:00:00:00:01"
    assert iface.operstate == "up"
    assert iface.flags == 0x1003
    assert iface.mtu == 1500
    assert iface.dormant is None


def test_read_interface_class_missing_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_interface_class(str(tmp_path / "nope"), "nope")


def test_read_interface_class_invalid_number(tmp_path):
    device = _make_device(tmp_path, "eth0", {"mtu": "lots"})
    with pytest.raises(ValueError):
        read_interface_class(str(device), "eth0")


def test_metrics_for_up_interface(tmp_path):
    device = _make_device(tmp_path, "eth0", ETH0)
    metrics = _by_name(net_class_metrics(read_interface_class(str(device), "eth0")))
    assert metrics["node_network_up"].value == 1.0
    info = metrics["node_network_info"]
    assert info.labels["ifalias"] == "uplink"
    assert info.labels["duplex"] == "full"
    assert metrics["node_network_mtu_bytes"].value == 1500.0
    assert metrics["node_network_carrier_changes_total"].value_type is ValueType.COUNTER
    assert metrics["node_network_speed_bytes"].value == 125000000.0
    assert "node_network_dormant" not in metrics


def test_down_interface_reports_zero():
    metrics = _by_name(net_class_metrics(InterfaceClass(name="eth1", operstate="down")))
    assert metrics["node_network_up"].value == 0.0
    assert set(metrics) == {"node_network_up", "node_network_info"}


def test_invalid_speed_handling():
    iface = InterfaceClass(name="eth0", speed=-1)
    kept = _by_name(net_class_metrics(iface, ignore_invalid_speed=False))
    assert kept["node_network_speed_bytes"].value < 0
    dropped = _by_name(net_class_metrics(iface, ignore_invalid_speed=True))
    assert "node_network_speed_bytes" not in dropped


def test_collector_update_and_ignore(tmp_path):
    _make_device(tmp_path, "eth0", ETH0)
    _make_device(tmp_path, "lo", {"operstate": "unknown", "mtu": "65536"})
    collector = NetClassCollector(Paths(sys_path=str(tmp_path)), ignored_devices="^lo$")
    devices = {m.labels["device"] for m in collector.update()}
    assert devices == {"eth0"}

    everything = NetClassCollector(Paths(sys_path=str(tmp_path)))
    assert {m.labels["device"] for m in everything.update()} == {"eth0", "lo"}


def test_collector_without_sysfs_raises_no_data(tmp_path):
    collector = NetClassCollector(Paths(sys_path=str(tmp_path / "missing")))
    with pytest.raises(NoDataError):
        collector.update()