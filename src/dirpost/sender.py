from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass

from .codec import END_OF_TRANSFER, Entry
from .constants import CHUNK_SIZE
from .errors import IoError
from .fs import LocalFilesystem
from .receiver import Metrics
from .transport import StreamTransport
from .walker import walk

logger = logging.getLogger(__name__)


class SenderState(enum.Enum):
    IDLE = "idle"
    WALKING = "walking"
    EMITTING_DIR = "emitting_dir"
    EMITTING_FILE = "emitting_file"
    CLOSING = "closing"
    DONE = "done"


@dataclass(slots=True)
class TreeSender:
    transport: StreamTransport
    fs: LocalFilesystem
    state: SenderState = SenderState.IDLE

    def run(self) -> Metrics:
        metrics = Metrics()
        logger.info("sending from %s", self.fs.root)

        self.state = SenderState.WALKING
        for entry in walk(self.fs.root, self.fs):
            if entry.is_directory:
                self.state = SenderState.EMITTING_DIR
                self.transport.write_frame(entry)
                metrics.directories += 1
                logger.debug("sent directory %s", entry.path)
            else:
                self.state = SenderState.EMITTING_FILE
                self._send_file(entry)
                metrics.files += 1
                metrics.bytes_transferred += entry.size
            self.state = SenderState.WALKING

        self.state = SenderState.CLOSING
        self.transport.write_frame(END_OF_TRANSFER)
        self.transport.finish()

        self.state = SenderState.DONE
        metrics.end_ts = time.monotonic()
        logger.info(
            "send done; dirs=%d files=%d bytes=%d",
            metrics.directories,
            metrics.files,
            metrics.bytes_transferred,
        )
        return metrics

    def _send_file(self, entry: Entry) -> None:
        logger.info("sending: %s (%d bytes)", entry.path, entry.size)
        with self.fs.open_for_read(entry.relative_path) as src:
            self.transport.write_frame(entry)
            remaining = entry.size
            while remaining > 0:
                try:
                    chunk = src.read(min(CHUNK_SIZE, remaining))
                except OSError as exc:
                    raise IoError(f"cannot read {entry.path}: {exc}") from exc
                if not chunk:
                    raise IoError(
                        f"{entry.path} shrank during transfer: "
                        f"{entry.size - remaining} of {entry.size} bytes sent"
                    )
                self.transport.write_bytes(chunk)
                remaining -= len(chunk)
