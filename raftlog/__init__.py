"""Readable sizes, checksums, LZ4 blocks, write grouping and stress-test helpers for a Raft log engine."""

__version__ = "0.1.0"