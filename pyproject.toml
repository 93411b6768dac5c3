[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "raftlog"
version = "0.1.0"
description = "Building blocks for a Raft log storage engine: readable sizes, checksums, LZ4 blocks, write grouping and stress-test helpers."
requires-python = ">=3.10"
dependencies = [
    "lz4",
]
keywords = ["raft", "log", "storage", "write-ahead log", "lz4", "crc32", "group commit"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["raftlog"]

[tool.hatch.build.targets.sdist]
include = ["raftlog", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
