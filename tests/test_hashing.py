import pytest

from raftlog.hashing import crc32, hash_u64, unhash_u64


def test_unhash():
    assert unhash_u64(hash_u64(777)) == 777


@pytest.mark.parametrize("value", [0, 1, 2, 42, 2**32, 2**63, 2**64 - 1, 0xDEADBEEFCAFEBABE])
def test_hash_round_trip(value):
    assert unhash_u64(hash_u64(value)) == value


def test_hash_stays_in_u64():
    for value in (1, 12345, 2**64 - 1):
        assert 0 <= hash_u64(value) < 2**64


def test_hash_zero_is_zero():
    assert hash_u64(0) == 0


def test_hash_spreads_neighbours():
    assert len({hash_u64(v) for v in range(1000)}) == 1000


def test_crc32_check_value():
    assert crc32(b"123456789") == 0xCBF43926


def test_crc32_empty():
    assert crc32(b"") == 0