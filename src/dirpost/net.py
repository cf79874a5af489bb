from __future__ import annotations

import socket
from typing import Optional, Protocol, Tuple

from .errors import SessionConnectionError


class Channel(Protocol):
    def read(self, n: int) -> bytes: ...

    def write(self, data: bytes) -> None: ...

    def shutdown_write(self) -> None: ...

    def close(self) -> None: ...


class TcpChannel:
    def __init__(self, sock: socket.socket, peer: Tuple[str, int]):
        self.sock = sock
        self.peer = peer

    @classmethod
    def connect(cls, host: str, port: int, timeout: Optional[float] = None) -> "TcpChannel":
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as exc:
            raise SessionConnectionError(f"cannot connect to {host}:{port}: {exc}") from exc
        # transfer itself runs without a timeout
        sock.settimeout(None)
        return cls(sock, (host, port))

    def read(self, n: int) -> bytes:
        return self.sock.recv(n)

    def write(self, data: bytes) -> None:
        self.sock.sendall(data)

    def shutdown_write(self) -> None:
        self.sock.shutdown(socket.SHUT_WR)

    def close(self) -> None:
        self.sock.close()


class TcpListener:
    def __init__(self, sock: socket.socket):
        self.sock = sock

    @classmethod
    def bind(cls, host: str, port: int) -> "TcpListener":
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(1)
        except OSError as exc:
            sock.close()
            raise SessionConnectionError(f"cannot listen on {host}:{port}: {exc}") from exc
        return cls(sock)

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self.sock.getsockname()[:2]
        return host, port

    def accept(self, timeout: Optional[float] = None) -> TcpChannel:
        self.sock.settimeout(timeout)
        try:
            conn, addr = self.sock.accept()
        except OSError as exc:
            raise SessionConnectionError(f"accept failed: {exc}") from exc
        conn.settimeout(None)
        return TcpChannel(conn, addr[:2])

    def close(self) -> None:
        self.sock.close()
