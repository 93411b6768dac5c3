"""Checksums and integer hashing."""

import zlib

_MASK = (1 << 64) - 1


def crc32(data: bytes) -> int:
    """CRC-32 (IEEE) checksum of ``data``."""
    return zlib.crc32(data) & 0xFFFFFFFF


def hash_u64(value: int) -> int:
    """Mix a 64-bit integer with the splitmix64 finalizer."""
    i = value & _MASK
    i = ((i ^ (i >> 30)) * 0xBF58476D1CE4E5B9) & _MASK
    i = ((i ^ (i >> 27)) * 0x94D049BB133111EB) & _MASK
    return i ^ (i >> 31)


def unhash_u64(value: int) -> int:
    """Invert :func:`hash_u64`."""
    i = value & _MASK
    i = ((i ^ (i >> 31) ^ (i >> 62)) * 0x319642B2D24D8EC3) & _MASK
    i = ((i ^ (i >> 27) ^ (i >> 54)) * 0x96DE1B173F119089) & _MASK
    return i ^ (i >> 30) ^ (i >> 60)