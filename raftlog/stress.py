"""Workload driver pieces: options, latency summaries and pacing helpers."""

from __future__ import annotations

import argparse
import math
import statistics
import threading
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .size import ReadableSize

DEFAULT_TIME = 60.0
DEFAULT_REGIONS = 5
DEFAULT_PURGE_INTERVAL = 10.0
DEFAULT_COMPACT_COUNT = 0
DEFAULT_FORCE_COMPACT_FACTOR = 0.5
DEFAULT_WRITE_THREADS = 1
DEFAULT_WRITE_OPS_PER_THREAD = 0
DEFAULT_READ_THREADS = 0
DEFAULT_READ_OPS_PER_THREAD = 0
DEFAULT_ENTRY_SIZE = 1024
DEFAULT_WRITE_ENTRY_COUNT = 10
DEFAULT_WRITE_REGION_COUNT = 5
DEFAULT_WRITE_SYNC = False

# Spin for at most this long before a deadline instead of sleeping.
_MAX_SPIN_SECONDS = 10e-6


@dataclass
class StressArgs:
    """Workload parameters; durations are in seconds."""

    time: float = DEFAULT_TIME
    regions: int = DEFAULT_REGIONS
    purge_interval: float = DEFAULT_PURGE_INTERVAL
    compact_count: int = DEFAULT_COMPACT_COUNT
    force_compact_factor: float = DEFAULT_FORCE_COMPACT_FACTOR
    write_threads: int = DEFAULT_WRITE_THREADS
    write_ops_per_thread: int = DEFAULT_WRITE_OPS_PER_THREAD
    read_threads: int = DEFAULT_READ_THREADS
    read_ops_per_thread: int = DEFAULT_READ_OPS_PER_THREAD
    entry_size: int = DEFAULT_ENTRY_SIZE
    write_entry_count: int = DEFAULT_WRITE_ENTRY_COUNT
    write_region_count: int = DEFAULT_WRITE_REGION_COUNT
    write_without_sync: bool = DEFAULT_WRITE_SYNC

    def validate(self) -> None:
        """Raise ``ValueError`` if the thread and region counts do not fit together."""
        if self.regions < self.write_threads:
            raise ValueError("Write thread count must be smaller than region count.")
        if self.regions < self.read_threads:
            raise ValueError("Read thread count must be smaller than region count.")
        if self.write_region_count > self.regions // self.write_threads:
            raise ValueError(
                "Write region count must be smaller than region-count / write-threads."
            )


@dataclass
class EngineSizes:
    """Storage settings handed to the log engine."""

    dir: str
    reuse_data: bool = False
    target_file_size: ReadableSize = field(default_factory=lambda: ReadableSize.mb(128))
    purge_threshold: ReadableSize = field(default_factory=lambda: ReadableSize.gb(10))
    purge_rewrite_threshold: ReadableSize = field(default_factory=lambda: ReadableSize.gb(1))
    purge_rewrite_garbage_ratio: float = 0.6
    batch_compression_threshold: ReadableSize = field(default_factory=lambda: ReadableSize.kb(8))


class _Histogram:
    """Exact latency histogram over integer samples."""

    def __init__(self, values: Iterable[int] = ()) -> None:
        self._values: List[int] = sorted(values)

    def record(self, value: int) -> None:
        self._values.append(value)
        self._values.sort()

    def merge(self, other: _Histogram) -> None:
        self._values = sorted(self._values + other._values)

    def __len__(self) -> int:
        return len(self._values)

    def min(self) -> int:
        return self._values[0] if self._values else 0

    def max(self) -> int:
        return self._values[-1] if self._values else 0

    def mean(self) -> float:
        return statistics.fmean(self._values) if self._values else 0.0

    def value_at_quantile(self, quantile: float) -> int:
        if not self._values:
            return 0
        quantile = min(max(quantile, 0.0), 1.0)
        rank = max(1, math.ceil(quantile * len(self._values)))
        return self._values[rank - 1]


class ThreadSummary:
    """Latencies and request timing observed by one worker thread."""

    def __init__(self) -> None:
        self.hist = _Histogram()
        self.first: Optional[float] = None
        self.last: Optional[float] = None

    def record(self, start: float, end: float) -> None:
        """Record one request that ran from ``start`` to ``end`` (seconds)."""
        nanos = max(0, round((end - start) * 1e9))
        self.hist.record(nanos // 1000)
        if self.first is None:
            self.first = start
        else:
            self.last = start

    def qps(self) -> float:
        if self.first is None or self.last is None:
            return 0.0
        elapsed = self.last - self.first
        count = len(self.hist) - 1.0
        if elapsed <= 0:
            return math.inf if count > 0 else math.nan
        return count / elapsed


class Summary:
    """Aggregate of several thread summaries."""

    def __init__(self) -> None:
        self.hist: Optional[_Histogram] = None
        self.thread_qps: List[float] = []

    def add(self, summary: ThreadSummary) -> None:
        self.thread_qps.append(summary.qps())
        if self.hist is None:
            self.hist = _Histogram()
        self.hist.merge(summary.hist)

    def _fairness(self) -> float:
        if len(self.thread_qps) > 2:
            median = statistics.median(self.thread_qps)
            stddev = statistics.stdev(self.thread_qps)
            return stddev / median if median else math.nan
        first, last = self.thread_qps[0], self.thread_qps[-1]
        total = first + last
        return abs(first - last) / total if total else math.nan

    def report(self, name: str) -> str:
        """Return the printable report, or an empty string if nothing was added."""
        if not self.thread_qps:
            return ""
        hist = self.hist if self.hist is not None else _Histogram()
        lines = [
            f"[{name}]",
            f"Throughput(QPS) = {sum(self.thread_qps):.2f}",
            (
                f"Latency(μs) min = {hist.min()}, avg = {hist.mean():.2f}, "
                f"p50 = {hist.value_at_quantile(0.5)}, p90 = {hist.value_at_quantile(0.9)}, "
                f"p95 = {hist.value_at_quantile(0.95)}, p99 = {hist.value_at_quantile(0.99)}, "
                f"p99.9 = {hist.value_at_quantile(0.999)}, max = {hist.max()}"
            ),
            f"Fairness = {100.0 - self._fairness() * 100.0:.1f}%",
        ]
        return "\n".join(lines)


class WrittenBytesCounter:
    """Counts bytes appended to log files."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.total = 0

    def on_append_log_file(self, length: int) -> None:
        with self._lock:
            self.total += length

    def report(self, seconds: int) -> str:
        with self._lock:
            total = self.total
        return f"Write Bandwidth = {ReadableSize(total // seconds)}/s"


def wait_until(now: float, deadline: float) -> float:
    """Block until the monotonic clock reaches ``deadline``; return the new time."""
    if deadline <= now:
        return now
    wait = deadline - now
    if wait > _MAX_SPIN_SECONDS:
        time.sleep(wait - _MAX_SPIN_SECONDS)
    while True:
        now = time.monotonic()
        if now >= deadline:
            return now


def _compact_factor(text: str) -> float:
    try:
        factor = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid factor: {text!r}") from None
    if factor >= 1.0:
        raise argparse.ArgumentTypeError("Factor must be smaller than 1.0")
    if factor <= 0.0:
        raise argparse.ArgumentTypeError("Factor must be positive")
    return factor


def _size(text: str) -> ReadableSize:
    try:
        return ReadableSize.parse(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stress", description="A stress test tool for the log engine"
    )
    parser.add_argument("--path", required=True, help="Set the data path for the engine")
    parser.add_argument("--time", type=int, default=int(DEFAULT_TIME), metavar="time[s]",
                        help="Set the stress test time")
    parser.add_argument("--regions", type=int, default=DEFAULT_REGIONS,
                        help="Set the region count")
    parser.add_argument("--purge-interval", type=int, default=int(DEFAULT_PURGE_INTERVAL),
                        metavar="interval[s]",
                        help="Set the interval to purge obsolete log files")
    parser.add_argument("--compact-count", type=int, default=None, metavar="n",
                        help="Compact log entries exceeding this threshold")
    parser.add_argument("--force-compact-factor", type=_compact_factor,
                        default=DEFAULT_FORCE_COMPACT_FACTOR, metavar="factor",
                        help="Factor to shrink raft log during force compact")
    parser.add_argument("--write-threads", type=int, default=DEFAULT_WRITE_THREADS,
                        help="Set the thread count for writing logs")
    parser.add_argument("--write-ops-per-thread", type=int,
                        default=DEFAULT_WRITE_OPS_PER_THREAD, metavar="ops",
                        help="Set the per-thread OPS for write requests")
    parser.add_argument("--read-threads", type=int, default=DEFAULT_READ_THREADS,
                        metavar="threads", help="Set the thread count for reading logs")
    parser.add_argument("--read-ops-per-thread", type=int,
                        default=DEFAULT_READ_OPS_PER_THREAD, metavar="ops",
                        help="Set the per-thread OPS for read entry requests")
    parser.add_argument("--entry-size", type=int, default=DEFAULT_ENTRY_SIZE, metavar="size",
                        help="Set the average size of log entry")
    parser.add_argument("--write-entry-count", type=int, default=DEFAULT_WRITE_ENTRY_COUNT,
                        metavar="count",
                        help="Set the average number of written entries of a region in a log batch")
    parser.add_argument("--write-region-count", type=int, default=DEFAULT_WRITE_REGION_COUNT,
                        metavar="count",
                        help="Set the average number of written regions in a log batch")
    parser.add_argument("--write-without-sync", action="store_true",
                        help="Do not sync after write")
    parser.add_argument("--reuse-data", action="store_true",
                        help="Reuse existing data in specified path")
    parser.add_argument("--target-file-size", type=_size, default="128MB", metavar="size",
                        help="Target log file size")
    parser.add_argument("--purge-threshold", type=_size, default="10GB", metavar="size",
                        help="Purge if log files are greater than this threshold")
    parser.add_argument("--purge-rewrite-threshold", type=_size, default="1GB",
                        metavar="size",
                        help="Purge if rewrite log files are greater than this threshold")
    parser.add_argument("--purge-rewrite-garbage-ratio", type=float, default=0.6,
                        metavar="ratio",
                        help="Purge if rewrite log files garbage ratio is greater than this threshold")
    parser.add_argument("--compression-threshold", dest="batch_compression_threshold",
                        type=_size, default="8KB", metavar="size",
                        help="Compress log batch bigger than this threshold")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Tuple[StressArgs, EngineSizes]:
    """Parse command-line options into workload and engine settings."""
    opts = _build_parser().parse_args(argv)
    args = StressArgs(
        time=float(opts.time),
        regions=opts.regions,
        purge_interval=float(opts.purge_interval),
        compact_count=(
            opts.compact_count if opts.compact_count is not None else DEFAULT_COMPACT_COUNT
        ),
        force_compact_factor=opts.force_compact_factor,
        write_threads=opts.write_threads,
        write_ops_per_thread=opts.write_ops_per_thread,
        read_threads=opts.read_threads,
        read_ops_per_thread=opts.read_ops_per_thread,
        entry_size=opts.entry_size,
        write_entry_count=opts.write_entry_count,
        write_region_count=opts.write_region_count,
        write_without_sync=opts.write_without_sync,
    )
    sizes = EngineSizes(
        dir=opts.path,
        reuse_data=opts.reuse_data,
        target_file_size=opts.target_file_size,
        purge_threshold=opts.purge_threshold,
        purge_rewrite_threshold=opts.purge_rewrite_threshold,
        purge_rewrite_garbage_ratio=opts.purge_rewrite_garbage_ratio,
        batch_compression_threshold=opts.batch_compression_threshold,
    )
    return args, sizes