# raftlog

Small, self-contained pieces used by a Raft log storage engine:

- `raftlog.size`: `ReadableSize`, a byte count that parses and prints
  human-readable sizes in binary units (`KiB`, `MiB`, `GiB`, `TiB`, `PiB`).
- `raftlog.hashing`: `crc32`, and the reversible 64-bit mixers `hash_u64` and
  `unhash_u64`.
- `raftlog.lz4block`: LZ4 block compression with a little-endian length
  prefix. It provides `append_compress_block` and `decompress_block`, which
  raise `CompressionError` or `CorruptionError` on failure.
- `raftlog.write_barrier`: `Writer`, `WriteGroup` and `WriteBarrier`, which
  batch concurrent writers into groups so that a single leader thread
  processes the whole group.
- `raftlog.stress`: helpers for load testing a log engine. It covers option
  parsing and validation (`parse_args`, `StressArgs`, `EngineSizes`),
  per-thread latency and throughput summaries (`ThreadSummary`, `Summary`), a
  written-bytes counter (`WrittenBytesCounter`) and a pacing helper
  (`wait_until`).

## Installation

The package needs Python 3.10 or newer and depends on `lz4`. Install it with
your usual Python package installer. The `test` extra adds `pytest`.

## Sizes

```python
from raftlog.size import ReadableSize

size = ReadableSize.parse("0.5MB")      # binary units: 0.5 * 1024 * 1024 = 524288
print(str(ReadableSize.kb(2)))          # 2.0KiB
print(ReadableSize.kb(2).serialize())   # "2KiB"
print(ReadableSize(512).serialize())    # 512
print(ReadableSize.gb(2).as_mb())       # 2048
```

Accepted units are `B`, `K`/`KB`/`KiB`, `M`/`MB`/`MiB`, `G`/`GB`/`GiB`,
`T`/`TB`/`TiB` and `P`/`PB`/`PiB`. Units are case-sensitive, and no unit means
bytes. The number may use a decimal point or scientific notation (`1e-1MB`).
Any other input raises `ValueError`. A fractional byte count is truncated.

`serialize` returns a string such as `"4MiB"` when the size is a whole number
of the largest fitting unit, and `"0KiB"` for zero. Any other size comes back
as a plain integer. `deserialize` accepts either form, and it rejects negative
integers with `ValueError` and other types with `TypeError`.

Sizes compare and order by their byte count. Multiplying by an integer gives a
size. Dividing by an integer, with `/` or `//`, gives a size rounded down.
Dividing by another size gives an integer count:

```python
ReadableSize.mb(1) / 2                   # ReadableSize(value=524288)
ReadableSize.mb(2) / ReadableSize.kb(1)  # 2048
```

## Checksums and hashing

```python
from raftlog.hashing import crc32, hash_u64, unhash_u64

checksum = crc32(b"payload")             # CRC-32 (IEEE), unsigned 32-bit
assert unhash_u64(hash_u64(777)) == 777  # splitmix64 mixer and its inverse
```

## LZ4 blocks

`append_compress_block(buf, skip)` compresses `buf[skip:]` and appends the
4-byte little-endian uncompressed length followed by the compressed bytes to
the same `bytearray`. If there is nothing to compress, `buf` is left
unchanged. `decompress_block` reverses it:

```python
from raftlog.lz4block import append_compress_block, decompress_block

buf = bytearray(b"12345678910")
original_len = len(buf)
append_compress_block(buf, 0)
assert decompress_block(bytes(buf[original_len:])) == b"12345678910"
```

`decompress_block(b"")` returns `b""`. It raises `CorruptionError` if the
input is 1 to 4 bytes long or if the decoded length does not match the
prefix. It raises `CompressionError` if the codec rejects the data.

## Grouping writers

Each thread wraps its payload in a `Writer` and enters the shared
`WriteBarrier`. The thread that becomes leader receives a `WriteGroup`,
processes every writer in it, and closes the group so the next group can
form. Leaving a `with` block or calling `close()` closes the group.
Followers block until their group is done and then get `None`. Every thread
then collects its result with `Writer.finish()`, which raises `RuntimeError`
if no output was set.

```python
from raftlog.write_barrier import Writer, WriteBarrier

barrier = WriteBarrier()

def write(payload):
    writer = Writer(payload, False)
    group = barrier.enter(writer)
    if group is not None:
        with group:
            for member in group:
                member.set_output(member.payload)
    return writer.finish()
```

## Stress-test helpers

`parse_args(argv)` reads options into a `StressArgs` workload and an
`EngineSizes` storage setting. `--path` is required. The other options are:

- `--time`, `--regions` and `--purge-interval`
- `--compact-count` and `--force-compact-factor` (must be between 0 and 1,
  exclusive)
- `--write-threads`, `--write-ops-per-thread`, `--read-threads` and
  `--read-ops-per-thread`
- `--entry-size`, `--write-entry-count` and `--write-region-count`
- `--write-without-sync` and `--reuse-data`
- `--target-file-size`, `--purge-threshold`, `--purge-rewrite-threshold`,
  `--purge-rewrite-garbage-ratio` and `--compression-threshold`

The size options take `ReadableSize` strings. `StressArgs.validate()` raises
`ValueError` when the thread and region counts do not fit together.

The remaining helpers are:

- `ThreadSummary.record(start, end)` stores the latency of one request in
  microseconds, given times in seconds. `qps()` returns that thread's
  throughput.
- `Summary.add()` merges thread summaries. `Summary.report(name)` returns a
  text report with total throughput, the latency minimum, mean, p50, p90,
  p95, p99, p99.9 and maximum, and a fairness percentage across threads. It
  returns an empty string if nothing was added.
- `WrittenBytesCounter` sums appended byte counts. Its `report(seconds)`
  returns a bandwidth line.
- `wait_until(now, deadline)` sleeps and then spins until the monotonic clock
  reaches `deadline`, and returns the new time.

## What this package does not include

There is no log engine here. Nothing stores, reads, compacts or purges log
entries, and there is no stress-test command. The `raftlog.stress` helpers
parse options and summarise measurements, but they do not start worker
threads or drive any workload themselves.