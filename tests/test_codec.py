from __future__ import annotations

import struct

import pytest

from dirpost.codec import END_OF_TRANSFER, Entry, EntryKind, decode_frame, encode_frame
from dirpost.errors import DecodeError


def raw_frame(kind: int, path: bytes, size: int | None = None) -> bytes:
    out = struct.pack("!BI", kind, len(path)) + path
    if size is not None:
        out += struct.pack("!Q", size)
    return out


def test_directory_wire_layout():
    raw = encode_frame(Entry.directory(("a", "b")))
    assert raw == b"\x00\x00\x00\x00\x03a/b"


def test_file_wire_layout():
    raw = encode_frame(Entry.file(("x.txt",), 258))
    assert raw == b"\x01\x00\x00\x00\x05x.txt" + b"\x00" * 6 + b"\x01\x02"


def test_sentinel_is_single_byte():
    assert encode_frame(END_OF_TRANSFER) == b"\x02"
    assert decode_frame(b"\x02") is END_OF_TRANSFER


def test_roundtrip_file():
    e = Entry.file(("dir", "caf\u00e9.bin"), 2**40)
    p = decode_frame(encode_frame(e))
    assert p == e
    assert p.kind is EntryKind.FILE
    assert p.path == "dir/caf\u00e9.bin"


def test_roundtrip_directory_has_no_size():
    e = Entry.directory(("only",))
    raw = encode_frame(e)
    assert len(raw) == 1 + 4 + 4
    assert decode_frame(raw) == e


@pytest.mark.parametrize(
    "path",
    [b"../escape", b"a/../../b", b"/etc/passwd", b"a//b", b"./a", b"a/", b"C:/win", b"a\\..\\b", b"a\x00b"],
)
def test_rejects_escaping_paths(path):
    with pytest.raises(DecodeError):
        decode_frame(raw_frame(1, path, 1))


def test_rejects_empty_path():
    with pytest.raises(DecodeError):
        decode_frame(raw_frame(0, b""))


def test_rejects_overlong_path_length():
    with pytest.raises(DecodeError):
        decode_frame(struct.pack("!BI", 0, 0xFFFFFFFF))


def test_rejects_unknown_kind():
    with pytest.raises(DecodeError):
        decode_frame(raw_frame(7, b"a"))


def test_rejects_invalid_utf8():
    with pytest.raises(DecodeError):
        decode_frame(raw_frame(0, b"\xff\xfe"))


def test_rejects_truncated_and_trailing_bytes():
    raw = encode_frame(Entry.file(("f",), 3))
    with pytest.raises(DecodeError):
        decode_frame(raw[:-1])
    with pytest.raises(DecodeError):
        decode_frame(raw + b"x")


def test_encode_refuses_parent_segment():
    with pytest.raises(ValueError):
        encode_frame(Entry.directory(("..", "x")))
