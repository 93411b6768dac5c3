import pytest

from raftlog.lz4block import (
    CompressionError,
    CorruptionError,
    append_compress_block,
    decompress_block,
)


@pytest.mark.parametrize("data", [b"", b"123", b"12345678910"])
def test_basic(data):
    buf = bytearray(data)
    append_compress_block(buf, 0)
    assert decompress_block(bytes(buf[len(data):])) == data


def test_empty_content_appends_nothing():
    buf = bytearray(b"header")
    append_compress_block(buf, 6)
    assert buf == bytearray(b"header")


def test_skip_keeps_prefix():
    payload = b"x" * 4096
    buf = bytearray(b"head" + payload)
    append_compress_block(buf, 4)
    assert buf[: 4 + len(payload)] == b"head" + payload
    tail = bytes(buf[4 + len(payload):])
    assert tail[:4] == len(payload).to_bytes(4, "little")
    assert len(tail) < len(payload)
    assert decompress_block(tail) == payload


def test_short_literal_block_layout():
    buf = bytearray(b"123")
    append_compress_block(buf, 0)
    assert bytes(buf) == b"123" + b"\x03\x00\x00\x00" + b"\x30123"


@pytest.mark.parametrize("src", [b"\x01", b"\x01\x02\x03\x04"])
def test_too_short_is_corruption(src):
    with pytest.raises(CorruptionError):
        decompress_block(src)


def test_garbage_fails():
    with pytest.raises((CompressionError, CorruptionError)):
        decompress_block(b"\x10\x00\x00\x00\xff\xff\xff\xff")


def test_empty_source_decodes_to_empty():
    assert decompress_block(b"") == b""