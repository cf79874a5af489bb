from __future__ import annotations

import socket
import threading

import pytest

from dirpost.engine import transfer
from dirpost.errors import SessionConnectionError, WalkError
from dirpost.net import TcpListener
from dirpost.session import Direction, Role, SessionConfig, negotiate_direction, open_session


@pytest.mark.parametrize(
    "role, reverse, expected",
    [
        (Role.LISTENER, False, Direction.RECEIVE),
        (Role.LISTENER, True, Direction.SEND),
        (Role.INITIATOR, False, Direction.SEND),
        (Role.INITIATOR, True, Direction.RECEIVE),
    ],
)
def test_direction_negotiation(role, reverse, expected):
    assert negotiate_direction(role, reverse) is expected


def test_role_follows_host():
    assert SessionConfig(root=".").role is Role.LISTENER
    assert SessionConfig(root=".", host="example.org").role is Role.INITIATOR
    assert SessionConfig(root=".", host="example.org", reverse=True).direction is Direction.RECEIVE


def test_config_is_immutable():
    cfg = SessionConfig(root=".")
    with pytest.raises(AttributeError):
        cfg.port = 1  # type: ignore[misc]


def test_bad_root_fails_before_connecting(tmp_path):
    cfg = SessionConfig(root=str(tmp_path / "missing"), host="127.0.0.1", port=1)
    with pytest.raises(WalkError):
        open_session(cfg)


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def test_connect_refused_is_connection_error(tmp_path):
    cfg = SessionConfig(root=str(tmp_path), host="127.0.0.1", port=free_port(), connect_timeout=2.0)
    with pytest.raises(SessionConnectionError):
        open_session(cfg)


def test_bind_conflict_is_connection_error():
    first = TcpListener.bind("127.0.0.1", 0)
    try:
        _, port = first.address
        with pytest.raises(SessionConnectionError):
            TcpListener.bind("127.0.0.1", port)
    finally:
        first.close()


def test_accept_timeout_is_connection_error(tmp_path):
    listener = TcpListener.bind("127.0.0.1", 0)
    cfg = SessionConfig(root=str(tmp_path), connect_timeout=0.05)
    try:
        with pytest.raises(SessionConnectionError):
            open_session(cfg, listener)
    finally:
        listener.close()


def run_pair(listen_root, connect_root, reverse: bool):
    listener = TcpListener.bind("127.0.0.1", 0)
    _, port = listener.address
    result: dict = {}

    def listen_side():
        try:
            result["listener"] = transfer(SessionConfig(root=str(listen_root), reverse=reverse), listener)
        except Exception as exc:  # surfaced to the test thread below
            result["error"] = exc
        finally:
            listener.close()

    t = threading.Thread(target=listen_side, daemon=True)
    t.start()
    result["initiator"] = transfer(
        SessionConfig(root=str(connect_root), host="127.0.0.1", port=port, reverse=reverse, connect_timeout=5.0)
    )
    t.join(timeout=10.0)
    assert not t.is_alive()
    if "error" in result:
        raise result["error"]
    return result


@pytest.mark.parametrize("reverse", [False, True])
def test_loopback_roundtrip(tmp_path, tree_io, reverse):
    write_tree, read_tree = tree_io
    src, dst = tmp_path / "src", tmp_path / "dst"
    write_tree(src, {"a/b/c.txt": b"abc" * 50000, "d.bin": b"\x00\x01", "e/f/g/empty": b""}, dirs=("h",))
    dst.mkdir()

    listen_root, connect_root = (src, dst) if reverse else (dst, src)
    result = run_pair(listen_root, connect_root, reverse)

    assert read_tree(dst) == read_tree(src)
    sender = result["listener"] if reverse else result["initiator"]
    receiver = result["initiator"] if reverse else result["listener"]
    assert sender.files == receiver.files == 3
    assert sender.bytes_transferred == receiver.bytes_transferred == 150002
