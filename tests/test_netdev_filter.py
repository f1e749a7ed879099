import re

import pytest

from nodestats.netdev_filter import NetDevFilter


@pytest.mark.parametrize(
    "ignore, accept, name, expected",
    [
        ("", "", "eth0", False),
        ("", "^💩0$", "💩0", False),
        ("", "^💩0$", "💩1", True),
        ("", "^💩0$", "veth0", True),
        ("^💩", "", "💩3", True),
        ("^💩", "", "veth0", False),
    ],
)
def test_net_dev_filter(ignore, accept, name, expected):
    assert NetDevFilter(ignore, accept).ignored(name) is expected


def test_pattern_matches_anywhere():
    device_filter = NetDevFilter("eth", "")
    assert device_filter.ignored("veth0") is True
    assert device_filter.ignored("lo") is False


def test_invalid_pattern_raises():
    with pytest.raises(re.error):
        NetDevFilter("(", "")