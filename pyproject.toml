[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pstorecsi"
version = "0.1.0"
description = "Helpers for a PowerStore container storage driver: CSI types, volume validation, networking, target discovery and Kubernetes node labels"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["csi", "powerstore", "storage", "kubernetes", "nfs", "iscsi", "nvme"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pstorecsi"]

[tool.hatch.build.targets.sdist]
include = ["pstorecsi", "tests", "README.md", "pyproject.toml"]

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
