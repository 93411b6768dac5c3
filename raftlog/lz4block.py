"""LZ4 block compression with a little-endian length prefix."""

from __future__ import annotations

import struct

import lz4.block

_I32_MAX = 2**31 - 1
_LEN = struct.Struct("<I")


class CompressionError(Exception):
    """The codec failed to compress or decompress a block."""


class CorruptionError(Exception):
    """A compressed block is malformed."""


def append_compress_block(buf: bytearray, skip: int) -> None:
    """Compress ``buf[skip:]`` and append ``{decoded_len | content}`` to ``buf``."""
    content = bytes(buf[skip:])
    if not content:
        return
    if len(content) > _I32_MAX:
        raise ValueError(f"Content too long {len(content)}")
    try:
        compressed = lz4.block.compress(content, mode="default", store_size=False)
    except lz4.block.LZ4BlockError as exc:
        raise CompressionError("Compression failed") from exc
    if not compressed:
        raise CompressionError("Compression failed")
    buf += _LEN.pack(len(content) & 0xFFFFFFFF)
    buf += compressed


def decompress_block(src: bytes) -> bytes:
    """Decode a block produced by :func:`append_compress_block`."""
    if not src:
        return b""
    if len(src) <= _LEN.size:
        raise CorruptionError(f"Content to compress to short {len(src)}")
    (expected,) = _LEN.unpack_from(src)
    try:
        result = lz4.block.decompress(bytes(src[_LEN.size:]), uncompressed_size=expected)
    except lz4.block.LZ4BlockError as exc:
        raise CompressionError(f"Decompression failed {exc}") from exc
    if len(result) != expected:
        raise CorruptionError(
            f"Decompressed content length mismatch {len(result)} != {expected}"
        )
    return bytes(result)