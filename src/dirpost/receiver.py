from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field

from .codec import Entry, EntryKind
from .constants import CHUNK_SIZE
from .errors import IoError, ShortReadError, TruncatedTransferError
from .fs import LocalFilesystem
from .transport import StreamTransport

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Metrics:
    directories: int = 0
    files: int = 0
    bytes_transferred: int = 0
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: float | None = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mbps(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_transferred * 8 / 1_000_000) / self.duration_s

    def as_dict(self) -> dict:
        return {
            "directories": self.directories,
            "files": self.files,
            "bytes": self.bytes_transferred,
            "seconds": self.duration_s,
            "mbps": self.throughput_mbps,
        }


class ReceiverState(enum.Enum):
    IDLE = "idle"
    AWAITING_FRAME = "awaiting_frame"
    MATERIALIZING_DIR = "materializing_dir"
    MATERIALIZING_FILE = "materializing_file"
    DONE = "done"


@dataclass(slots=True)
class TreeReceiver:
    transport: StreamTransport
    fs: LocalFilesystem
    state: ReceiverState = ReceiverState.IDLE

    def run(self) -> Metrics:
        metrics = Metrics()
        logger.info("receiving into %s", self.fs.root)

        while True:
            self.state = ReceiverState.AWAITING_FRAME
            frame = self.transport.read_frame()
            if frame.kind == EntryKind.SENTINEL:
                break

            if frame.kind == EntryKind.DIRECTORY:
                self.state = ReceiverState.MATERIALIZING_DIR
                self.fs.create_directory(frame.relative_path)
                metrics.directories += 1
                logger.debug("created directory %s", frame.path)
            elif frame.kind == EntryKind.FILE:
                self.state = ReceiverState.MATERIALIZING_FILE
                self._receive_file(frame)
                metrics.files += 1
                metrics.bytes_transferred += frame.size

        self.state = ReceiverState.DONE
        metrics.end_ts = time.monotonic()
        logger.info(
            "receive done; dirs=%d files=%d bytes=%d",
            metrics.directories,
            metrics.files,
            metrics.bytes_transferred,
        )
        return metrics

    def _receive_file(self, entry: Entry) -> None:
        logger.info("writing: %s (%d bytes)", entry.path, entry.size)
        remaining = entry.size
        # partially written files stay on disk if anything below fails
        with self.fs.create_or_truncate(entry.relative_path) as out:
            while remaining > 0:
                want = min(CHUNK_SIZE, remaining)
                try:
                    chunk = self.transport.read_exact(want)
                except ShortReadError as exc:
                    out.write(exc.partial)
                    received = entry.size - remaining + exc.received
                    raise TruncatedTransferError(entry.path, entry.size, received) from exc
                try:
                    out.write(chunk)
                except OSError as exc:
                    raise IoError(f"cannot write {entry.path}: {exc}") from exc
                remaining -= want
