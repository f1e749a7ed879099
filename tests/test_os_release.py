import io

import pytest

from nodestats.metrics import NoDataError
from nodestats.os_release import OSRelease, OSReleaseCollector, parse_os_release

UBUNTU_FOCAL = """NAME="Ubuntu"
VERSION="20.04.2 LTS (Focal Fossa)"
ID=ubuntu
ID_LIKE=debian
PRETTY_NAME="Ubuntu 20.04.2 LTS"
VERSION_ID="20.04"
HOME_URL="https://www.example.com/"
SUPPORT_URL="https://help.example.com/"
VERSION_CODENAME=focal
UBUNTU_CODENAME=focal
"""

DEBIAN_BULLSEYE = """PRETTY_NAME="Debian GNU/Linux 11 (bullseye)"
NAME="Debian GNU/Linux"
VERSION_ID="11"
VERSION="11 (bullseye)"
VERSION_CODENAME=bullseye
ID=debian
HOME_URL="https://www.example.com/"
SUPPORT_URL="https://www.example.com/support"
BUG_REPORT_URL="https://bugs.example.com/"
"""

WANTED_UBUNTU = OSRelease(
    name="Ubuntu",
    id="ubuntu",
    id_like="debian",
    pretty_name="Ubuntu 20.04.2 LTS",
    version="20.04.2 LTS (Focal Fossa)",
    version_id="20.04",
    version_codename="focal",
)


def _write(root, relative, content):
    target = root / relative.lstrip("/")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return target


def test_parse_ubuntu():
    assert parse_os_release(io.StringIO(UBUNTU_FOCAL)) == WANTED_UBUNTU


def test_parse_debian():
    want = OSRelease(
        name="Debian GNU/Linux",
        id="debian",
        pretty_name="Debian GNU/Linux 11 (bullseye)",
        version="11 (bullseye)",
        version_id="11",
        version_codename="bullseye",
    )
    assert parse_os_release(io.StringIO(DEBIAN_BULLSEYE)) == want


def test_parse_single_quotes_comments_and_export():
    text = "# a comment\n\nexport NAME='My OS'\nID=myos # trailing\n"
    release = parse_os_release(io.StringIO(text))
    assert release.name == "My OS"
    assert release.id == "myos"


def test_parse_escapes_in_double_quotes():
    release = parse_os_release(io.StringIO('NAME="say \\"hi\\""\n'))
    assert release.name == 'say "hi"'


def test_parse_missing_equals_raises():
    with pytest.raises(ValueError):
        parse_os_release(io.StringIO("NAME\n"))


def test_parse_unterminated_quote_raises():
    with pytest.raises(ValueError):
        parse_os_release(io.StringIO('NAME="Ubuntu\n'))


def test_update_struct(tmp_path):
    path = _write(tmp_path, "/usr/lib/os-release", UBUNTU_FOCAL)
    collector = OSReleaseCollector()
    collector.update_struct(str(path))
    assert collector.os == WANTED_UBUNTU
    assert collector.version == 20.04


def test_update_struct_missing_file(tmp_path):
    collector = OSReleaseCollector()
    with pytest.raises(FileNotFoundError):
        collector.update_struct(str(tmp_path / "nope"))


def test_update_falls_back_to_usr_lib(tmp_path):
    _write(tmp_path, "/usr/lib/os-release", UBUNTU_FOCAL)
    metrics = OSReleaseCollector(rootfs_path=str(tmp_path)).update()
    by_name = {metric.name: metric for metric in metrics}
    assert by_name["node_os_info"].labels["pretty_name"] == "Ubuntu 20.04.2 LTS"
    assert by_name["node_os_info"].labels["version_codename"] == "focal"
    assert by_name["node_os_info"].value == 1.0
    assert by_name["node_os_version"].value == 20.04
    assert by_name["node_os_version"].labels == {
        "id": "ubuntu",
        "id_like": "debian",
        "name": "Ubuntu",
    }


def test_update_prefers_etc(tmp_path):
    _write(tmp_path, "/etc/os-release", DEBIAN_BULLSEYE)
    _write(tmp_path, "/usr/lib/os-release", UBUNTU_FOCAL)
    metrics = OSReleaseCollector(rootfs_path=str(tmp_path)).update()
    info = next(metric for metric in metrics if metric.name == "node_os_info")
    assert info.labels["id"] == "debian"


def test_update_without_version_has_no_version_metric(tmp_path):
    _write(tmp_path, "/etc/os-release", 'NAME="Rolling"\nID=rolling\n')
    metrics = OSReleaseCollector(rootfs_path=str(tmp_path)).update()
    assert [metric.name for metric in metrics] == ["node_os_info"]


def test_update_no_files_raises_no_data(tmp_path):
    with pytest.raises(NoDataError):
        OSReleaseCollector(rootfs_path=str(tmp_path)).update()


def test_update_struct_reuses_cache_when_unchanged(tmp_path):
    path = _write(tmp_path, "/etc/os-release", UBUNTU_FOCAL)
    collector = OSReleaseCollector()
    collector.update_struct(str(path))
    cached = collector.os
    collector.update_struct(str(path))
    assert collector.os is cached