"""Include/exclude filtering of network device names."""

from __future__ import annotations

import re


class NetDevFilter:
    """Decides which network devices a collector skips."""

    def __init__(self, ignored_pattern: str = "", accept_pattern: str = "") -> None:
        self.ignore_pattern = re.compile(ignored_pattern) if ignored_pattern else None
        self.accept_pattern = re.compile(accept_pattern) if accept_pattern else None

    def ignored(self, name: str) -> bool:
        """Return whether the device ``name`` should be skipped."""
        if self.ignore_pattern is not None and self.ignore_pattern.search(name):
            return True
        return self.accept_pattern is not None and not self.accept_pattern.search(name)