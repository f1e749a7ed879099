"""Locations of the proc, sys and root filesystems."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

DEFAULT_PROC_PATH = "/proc"
DEFAULT_SYS_PATH = "/sys"
DEFAULT_ROOTFS_PATH = "/"


def _clean(path: str) -> str:
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _join(*elements: str) -> str:
    parts = [element for element in elements if element]
    if not parts:
        return ""
    return _clean("/".join(parts))


@dataclass
class Paths:
    """Mount points used to resolve files the collectors read."""

    proc_path: str = DEFAULT_PROC_PATH
    sys_path: str = DEFAULT_SYS_PATH
    rootfs_path: str = DEFAULT_ROOTFS_PATH

    def proc_file_path(self, name: str) -> str:
        """Path of ``name`` inside the proc filesystem."""
        return _join(self.proc_path, name)

    def sys_file_path(self, name: str) -> str:
        """Path of ``name`` inside the sys filesystem."""
        return _join(self.sys_path, name)

    def rootfs_file_path(self, name: str) -> str:
        """Path of ``name`` inside the root filesystem."""
        return _join(self.rootfs_path, name)

    def rootfs_strip_prefix(self, path: str) -> str:
        """Remove the rootfs mount point from the front of ``path``."""
        if self.rootfs_path == "/":
            return path
        stripped = path.removeprefix(self.rootfs_path)
        return stripped or "/"