from __future__ import annotations

import logging
import os
import stat
from typing import Iterator, List, Optional, Tuple

from .codec import Entry, check_segments
from .constants import MAX_PATH_BYTES, PATH_SEPARATOR
from .errors import DecodeError, IoError, WalkError
from .fs import LocalFilesystem

logger = logging.getLogger(__name__)


def _portable(rel: Tuple[str, ...]) -> bool:
    """True if ``rel`` would pass the receiver's decode checks."""
    try:
        check_segments(rel)
        raw = PATH_SEPARATOR.join(rel).encode("utf-8")
    except (DecodeError, UnicodeEncodeError):
        return False
    return len(raw) <= MAX_PATH_BYTES


def _walk(fs: LocalFilesystem, root: str) -> Iterator[Entry]:
    stack: List[Tuple[Tuple[str, ...], Iterator[os.DirEntry]]] = [((), iter(fs.list_directory(root)))]
    while stack:
        prefix, items = stack[-1]
        item = next(items, None)
        if item is None:
            stack.pop()
            continue

        rel = prefix + (item.name,)
        if not _portable(rel):
            logger.warning("skipping %r: name cannot be sent", item.path)
            continue
        try:
            st = item.stat(follow_symlinks=False)
        except OSError as exc:
            raise IoError(f"cannot stat {item.path}: {exc}") from exc

        if stat.S_ISLNK(st.st_mode):
            logger.debug("skipping symlink %s", item.path)
        elif stat.S_ISDIR(st.st_mode):
            yield Entry.directory(rel)
            stack.append((rel, iter(fs.list_directory(item.path))))
        elif stat.S_ISREG(st.st_mode):
            yield Entry.file(rel, st.st_size)
        else:
            logger.debug("skipping special file %s", item.path)


def walk(root: str, fs: Optional[LocalFilesystem] = None) -> Iterator[Entry]:
    """Enumerate ``root`` depth-first in name order, directories before their contents.

    The root itself is not emitted. Symlinks, special files and names the
    receiver would reject are skipped.
    Raises WalkError immediately if ``root`` is not a directory.
    """
    if not os.path.isdir(root):
        raise WalkError(f"not a directory: {root}")
    fs = fs or LocalFilesystem(root)
    return _walk(fs, fs.root)
