from __future__ import annotations

import logging

from . import codec
from .codec import Frame
from .errors import ShortReadError, TransportError
from .net import Channel

logger = logging.getLogger(__name__)


class StreamTransport:
    """Frames and raw payload bytes over one ordered byte stream."""

    def __init__(self, channel: Channel):
        self.channel = channel

    def write_frame(self, frame: Frame) -> None:
        self.write_bytes(codec.encode_frame(frame))

    def read_frame(self) -> Frame:
        try:
            first = self.read_exact(1)
        except ShortReadError:
            raise TransportError("connection closed before end-of-transfer marker") from None
        pending = [first]

        def take(n: int) -> bytes:
            if pending:
                head = pending.pop()
                return head + self.read_exact(n - len(head))
            return self.read_exact(n)

        return codec.read_frame(take)

    def write_bytes(self, data: bytes) -> None:
        try:
            self.channel.write(data)
        except OSError as exc:
            raise TransportError(f"write failed: {exc}") from exc

    def read_exact(self, n: int) -> bytes:
        buf = bytearray()
        while len(buf) < n:
            try:
                chunk = self.channel.read(n - len(buf))
            except OSError as exc:
                raise TransportError(f"read failed: {exc}") from exc
            if not chunk:
                raise ShortReadError(n, bytes(buf))
            buf += chunk
        return bytes(buf)

    def finish(self) -> None:
        """Half-close our side, then wait for the peer to close theirs."""
        try:
            self.channel.shutdown_write()
            while self.channel.read(4096):
                pass
        except OSError as exc:
            raise TransportError(f"closing failed: {exc}") from exc
        logger.debug("peer closed the connection")
