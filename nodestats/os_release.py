"""Operating system identification from os-release files."""

from __future__ import annotations

import logging
import os
import re
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from nodestats.metrics import NAMESPACE, Metric, NoDataError, ValueType, build_fq_name

logger = logging.getLogger(__name__)

ETC_OS_RELEASE = "/etc/os-release"
USR_LIB_OS_RELEASE = "/usr/lib/os-release"

_VERSION_RE = re.compile(r"^[0-9]+\.?[0-9]*")
_KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "$": "$",
    "`": "`",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}

_INFO_LABELS = (
    "build_id",
    "id",
    "id_like",
    "image_id",
    "image_version",
    "name",
    "pretty_name",
    "variant",
    "variant_id",
    "version",
    "version_codename",
    "version_id",
)


@dataclass
class OSRelease:
    """Fields of an os-release file; absent ones are empty strings."""

    name: str = ""
    id: str = ""
    id_like: str = ""
    pretty_name: str = ""
    variant: str = ""
    variant_id: str = ""
    version: str = ""
    version_id: str = ""
    version_codename: str = ""
    build_id: str = ""
    image_id: str = ""
    image_version: str = ""


def _rest_is_comment(rest: str, lineno: int) -> None:
    rest = rest.strip()
    if rest and not rest.startswith("#"):
        raise ValueError(f"line {lineno}: unexpected text after quoted value: {rest!r}")


def _parse_double_quoted(text: str, lineno: int) -> str:
    chars: list[str] = []
    position = 1
    while position < len(text):
        char = text[position]
        if char == '"':
            _rest_is_comment(text[position + 1 :], lineno)
            return "".join(chars)
        if char == "\\":
            if position + 1 >= len(text):
                break
            escaped = text[position + 1]
            if escaped not in _ESCAPES:
                raise ValueError(f"line {lineno}: invalid escape sequence \\{escaped}")
            chars.append(_ESCAPES[escaped])
            position += 2
            continue
        chars.append(char)
        position += 1
    raise ValueError(f"line {lineno}: unterminated double-quoted value")


def _parse_single_quoted(text: str, lineno: int) -> str:
    end = text.find("'", 1)
    if end == -1:
        raise ValueError(f"line {lineno}: unterminated single-quoted value")
    _rest_is_comment(text[end + 1 :], lineno)
    return text[1:end]


def _parse_unquoted(text: str) -> str:
    match = re.search(r"\s#", text)
    if match is not None:
        text = text[: match.start()]
    return text.strip()


def _parse_env(stream: Iterable[str]) -> dict[str, str]:
    env: dict[str, str] = {}
    for lineno, raw in enumerate(stream, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export ") or line.startswith("export\t"):
            line = line[len("export") :].lstrip()
        key, separator, value = line.partition("=")
        if not separator:
            raise ValueError(f"line {lineno}: missing '=' in {line!r}")
        key = key.strip()
        if not _KEY_RE.fullmatch(key):
            raise ValueError(f"line {lineno}: invalid key {key!r}")
        value = value.lstrip()
        if value.startswith('"'):
            env[key] = _parse_double_quoted(value, lineno)
        elif value.startswith("'"):
            env[key] = _parse_single_quoted(value, lineno)
        else:
            env[key] = _parse_unquoted(value)
    return env


def parse_os_release(stream: Iterable[str]) -> OSRelease:
    """Parse the shell-style assignments of an os-release file."""
    env = _parse_env(stream)
    return OSRelease(
        name=env.get("NAME", ""),
        id=env.get("ID", ""),
        id_like=env.get("ID_LIKE", ""),
        pretty_name=env.get("PRETTY_NAME", ""),
        variant=env.get("VARIANT", ""),
        variant_id=env.get("VARIANT_ID", ""),
        version=env.get("VERSION", ""),
        version_id=env.get("VERSION_ID", ""),
        version_codename=env.get("VERSION_CODENAME", ""),
        build_id=env.get("BUILD_ID", ""),
        image_id=env.get("IMAGE_ID", ""),
        image_version=env.get("IMAGE_VERSION", ""),
    )


class OSReleaseCollector:
    """Exposes os-release information, re-reading the file only when it changes."""

    def __init__(self, rootfs_path: str = "/") -> None:
        self.rootfs_path = rootfs_path
        self.os: OSRelease | None = None
        self.os_filename = ""
        self.os_mtime: int | None = None
        self.os_release_filenames = [ETC_OS_RELEASE, USR_LIB_OS_RELEASE]
        self.version = 0.0
        self._lock = threading.Lock()

    def update_struct(self, path: str) -> None:
        """Load release information from ``path`` unless it is already cached."""
        with open(path, encoding="utf-8") as release_file:
            mtime = os.fstat(release_file.fileno()).st_mtime_ns
            if path == self.os_filename and mtime == self.os_mtime:
                return

            with self._lock:
                logger.debug(
                    "file modification time has changed: file=%s old=%s new=%s",
                    path,
                    self.os_mtime,
                    mtime,
                )
                self.os_filename = path
                self.os_mtime = mtime
                self.os = parse_os_release(release_file)

                major_minor = _VERSION_RE.match(self.os.version_id)
                self.version = float(major_minor.group(0)) if major_minor else 0.0

    def update(self) -> list[Metric]:
        """Collect the os info metric and, when known, the numeric version."""
        root = self.rootfs_path.rstrip("/")
        last = len(self.os_release_filenames) - 1
        for index, path in enumerate(self.os_release_filenames):
            try:
                self.update_struct(root + path)
                break
            except FileNotFoundError:
                if index >= last:
                    logger.debug(
                        "no os-release file found: %s", ",".join(self.os_release_filenames)
                    )
                    raise NoDataError("no os-release file found") from None

        release = self.os or OSRelease()
        info_values = (
            release.build_id,
            release.id,
            release.id_like,
            release.image_id,
            release.image_version,
            release.name,
            release.pretty_name,
            release.variant,
            release.variant_id,
            release.version,
            release.version_codename,
            release.version_id,
        )
        metrics = [
            Metric(
                name=build_fq_name(NAMESPACE, "os", "info"),
                help=(
                    "A metric with a constant '1' value labeled by build_id, id, id_like, "
                    "image_id, image_version, name, pretty_name, variant, variant_id, "
                    "version, version_codename, version_id."
                ),
                value_type=ValueType.GAUGE,
                value=1.0,
                labels=dict(zip(_INFO_LABELS, info_values)),
            )
        ]
        if self.version > 0:
            metrics.append(
                Metric(
                    name=build_fq_name(NAMESPACE, "os", "version"),
                    help="Metric containing the major.minor part of the OS version.",
                    value_type=ValueType.GAUGE,
                    value=self.version,
                    labels={"id": release.id, "id_like": release.id_like, "name": release.name},
                )
            )
        return metrics