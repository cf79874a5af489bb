"""Error taxonomy. Every error here aborts the whole session; nothing is retried."""

from __future__ import annotations


class DirpostError(Exception):
    kind = "Error"


class SessionConnectionError(DirpostError, ConnectionError):
    """bind, connect or accept failed."""

    kind = "ConnectionError"


class WalkError(DirpostError):
    """Transfer root is missing or is not a directory."""

    kind = "WalkError"


class DecodeError(DirpostError):
    """Malformed frame, or a path that would leave the transfer root."""

    kind = "DecodeError"


class TransportError(DirpostError):
    kind = "TransportError"


class ShortReadError(TransportError):
    def __init__(self, expected: int, partial: bytes = b""):
        super().__init__(f"connection closed after {len(partial)} of {expected} bytes")
        self.expected = expected
        self.partial = partial

    @property
    def received(self) -> int:
        return len(self.partial)


class IoError(DirpostError):
    """Local filesystem failure while reading or writing a file."""

    kind = "IoError"


class TruncatedTransferError(DirpostError):
    kind = "TruncatedTransferError"

    def __init__(self, path: str, expected: int, received: int):
        super().__init__(f"{path}: expected {expected} bytes, received {received}")
        self.path = path
        self.expected = expected
        self.received = received
