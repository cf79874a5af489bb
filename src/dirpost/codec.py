from __future__ import annotations

import enum
import io
import struct
from dataclasses import dataclass
from typing import Callable, Iterable, Tuple, Union

from .constants import (
    FILE_SIZE_FORMAT,
    KIND_DIRECTORY,
    KIND_FILE,
    KIND_FORMAT,
    KIND_SENTINEL,
    MAX_PATH_BYTES,
    PATH_LEN_FORMAT,
    PATH_SEPARATOR,
)
from .errors import DecodeError

_KIND = struct.Struct(KIND_FORMAT)
_PATH_LEN = struct.Struct(PATH_LEN_FORMAT)
_FILE_SIZE = struct.Struct(FILE_SIZE_FORMAT)


class EntryKind(enum.IntEnum):
    DIRECTORY = KIND_DIRECTORY
    FILE = KIND_FILE
    SENTINEL = KIND_SENTINEL


@dataclass(frozen=True, slots=True)
class Entry:
    kind: EntryKind
    relative_path: Tuple[str, ...]
    size: int = 0

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def path(self) -> str:
        return PATH_SEPARATOR.join(self.relative_path)

    def to_bytes(self) -> bytes:
        try:
            check_segments(self.relative_path)
        except DecodeError as exc:
            raise ValueError(str(exc)) from exc
        if self.size < 0:
            raise ValueError(f"negative size: {self.size}")

        raw_path = self.path.encode("utf-8")
        if len(raw_path) > MAX_PATH_BYTES:
            raise ValueError(f"path too long: {len(raw_path)} bytes")

        out = _KIND.pack(int(self.kind)) + _PATH_LEN.pack(len(raw_path)) + raw_path
        if self.is_file:
            out += _FILE_SIZE.pack(self.size)
        return out

    @staticmethod
    def directory(relative_path: Iterable[str]) -> "Entry":
        return Entry(kind=EntryKind.DIRECTORY, relative_path=tuple(relative_path))

    @staticmethod
    def file(relative_path: Iterable[str], size: int) -> "Entry":
        return Entry(kind=EntryKind.FILE, relative_path=tuple(relative_path), size=size)


@dataclass(frozen=True, slots=True)
class EndOfTransfer:
    """Terminal frame: the kind tag alone, no path and no size."""

    @property
    def kind(self) -> EntryKind:
        return EntryKind.SENTINEL

    def to_bytes(self) -> bytes:
        return _KIND.pack(int(EntryKind.SENTINEL))


END_OF_TRANSFER = EndOfTransfer()

Frame = Union[Entry, EndOfTransfer]


def check_segments(segments: Tuple[str, ...]) -> None:
    """Reject anything that could resolve outside the transfer root."""
    if not segments:
        raise DecodeError("empty path")
    for seg in segments:
        if seg in ("", ".", ".."):
            raise DecodeError(f"illegal path segment {seg!r}")
        if "\x00" in seg or "\\" in seg:
            raise DecodeError(f"illegal character in path segment {seg!r}")
    first = segments[0]
    if len(first) >= 2 and first[1] == ":" and first[0].isalpha():
        raise DecodeError(f"drive-qualified path {first!r}")


def parse_path(raw: bytes) -> Tuple[str, ...]:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"path is not valid utf-8: {exc}") from exc
    segments = tuple(text.split(PATH_SEPARATOR))
    check_segments(segments)
    return segments


def read_frame(read_exact: Callable[[int], bytes]) -> Frame:
    """Decode one frame, pulling exactly the bytes it needs from ``read_exact``."""
    (tag,) = _KIND.unpack(read_exact(_KIND.size))
    try:
        kind = EntryKind(tag)
    except ValueError:
        raise DecodeError(f"unknown frame kind: {tag}") from None

    if kind == EntryKind.SENTINEL:
        return END_OF_TRANSFER

    (path_len,) = _PATH_LEN.unpack(read_exact(_PATH_LEN.size))
    if path_len == 0:
        raise DecodeError("empty path")
    if path_len > MAX_PATH_BYTES:
        raise DecodeError(f"path length {path_len} exceeds {MAX_PATH_BYTES}")
    segments = parse_path(read_exact(path_len))

    if kind == EntryKind.FILE:
        (size,) = _FILE_SIZE.unpack(read_exact(_FILE_SIZE.size))
        return Entry.file(segments, size)
    return Entry.directory(segments)


def encode_frame(frame: Frame) -> bytes:
    return frame.to_bytes()


def decode_frame(raw: bytes) -> Frame:
    buf = io.BytesIO(raw)

    def take(n: int) -> bytes:
        chunk = buf.read(n)
        if len(chunk) != n:
            raise DecodeError("frame truncated")
        return chunk

    frame = read_frame(take)
    if buf.tell() != len(raw):
        raise DecodeError(f"{len(raw) - buf.tell()} trailing bytes after frame")
    return frame
