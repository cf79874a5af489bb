from __future__ import annotations

import os
from typing import BinaryIO, Iterable, List

from .errors import DecodeError, IoError


class LocalFilesystem:
    """Filesystem access confined to one transfer root."""

    def __init__(self, root: str):
        self.root = os.path.realpath(root)

    def resolve(self, segments: Iterable[str]) -> str:
        parts = list(segments)
        for seg in parts:
            if os.sep in seg or (os.altsep and os.altsep in seg):
                raise DecodeError(f"path segment {seg!r} contains a separator")
        candidate = os.path.join(self.root, *parts)
        real = os.path.realpath(candidate)
        if os.path.commonpath([self.root, real]) != self.root:
            raise DecodeError(f"{'/'.join(parts)} escapes the transfer root")
        return candidate

    def list_directory(self, path: str) -> List[os.DirEntry]:
        try:
            with os.scandir(path) as it:
                return sorted(it, key=lambda e: e.name)
        except OSError as exc:
            raise IoError(f"cannot list {path}: {exc}") from exc

    def create_directory(self, segments: Iterable[str]) -> str:
        path = self.resolve(segments)
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as exc:
            raise IoError(f"cannot create directory {path}: {exc}") from exc
        return path

    def open_for_read(self, segments: Iterable[str]) -> BinaryIO:
        path = self.resolve(segments)
        try:
            return open(path, "rb")
        except OSError as exc:
            raise IoError(f"cannot open {path}: {exc}") from exc

    def create_or_truncate(self, segments: Iterable[str]) -> BinaryIO:
        parts = list(segments)
        if len(parts) > 1:
            self.create_directory(parts[:-1])
        path = self.resolve(parts)
        try:
            return open(path, "wb")
        except OSError as exc:
            raise IoError(f"cannot create {path}: {exc}") from exc
