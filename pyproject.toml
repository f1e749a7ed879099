[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nodestats"
version = "0.1.0"
description = "Parsers and collectors that turn Linux kernel statistics from procfs and sysfs into labelled metrics."
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = [
    "monitoring",
    "metrics",
    "procfs",
    "sysfs",
    "linux",
    "network",
    "nfs",
    "pressure",
    "perf",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nodestats"]

[tool.hatch.build.targets.sdist]
include = [
    "nodestats",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
