"""Parsers and collectors that turn Linux procfs and sysfs statistics into metrics."""

__version__ = "0.1.0"