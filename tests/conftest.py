from __future__ import annotations

import os

import pytest


class MemoryChannel:
    """In-process channel: writes append to ``sent``, reads consume ``incoming``."""

    def __init__(self, incoming: bytes = b"", max_read: int | None = None):
        self.incoming = bytearray(incoming)
        self.sent = bytearray()
        self.max_read = max_read
        self.write_closed = False
        self.closed = False

    def read(self, n: int) -> bytes:
        if self.max_read is not None:
            n = min(n, self.max_read)
        chunk = bytes(self.incoming[:n])
        del self.incoming[:n]
        return chunk

    def write(self, data: bytes) -> None:
        if self.write_closed:
            raise BrokenPipeError("write side closed")
        self.sent += data

    def shutdown_write(self) -> None:
        self.write_closed = True

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def memory_channel():
    return MemoryChannel


def write_tree(root, files: dict[str, bytes], dirs: tuple[str, ...] = ()) -> None:
    for d in dirs:
        os.makedirs(os.path.join(root, *d.split("/")), exist_ok=True)
    for rel, data in files.items():
        path = os.path.join(root, *rel.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)


def read_tree(root) -> dict[str, bytes | None]:
    """Map every relative path under ``root`` to its bytes (None for directories)."""
    out: dict[str, bytes | None] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)
        for d in dirnames:
            out[os.path.normpath(os.path.join(rel_dir, d)).replace(os.sep, "/")] = None
        for fn in filenames:
            with open(os.path.join(dirpath, fn), "rb") as f:
                out[os.path.normpath(os.path.join(rel_dir, fn)).replace(os.sep, "/")] = f.read()
    return out


@pytest.fixture
def tree_io():
    return write_tree, read_tree
