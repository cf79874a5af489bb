from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from typing import Optional

from .constants import DEFAULT_BIND_HOST, DEFAULT_DIRECTORY, DEFAULT_PORT
from .errors import WalkError
from .net import Channel, TcpChannel, TcpListener

logger = logging.getLogger(__name__)


class Role(enum.Enum):
    INITIATOR = "client"
    LISTENER = "server"


class Direction(enum.Enum):
    SEND = "sending"
    RECEIVE = "receiving"


@dataclass(frozen=True, slots=True)
class SessionConfig:
    root: str = DEFAULT_DIRECTORY
    port: int = DEFAULT_PORT
    host: str = ""
    reverse: bool = False
    bind_host: str = DEFAULT_BIND_HOST
    connect_timeout: Optional[float] = None

    @property
    def role(self) -> Role:
        return role_for(self)

    @property
    def direction(self) -> Direction:
        return negotiate_direction(self.role, self.reverse)


@dataclass(slots=True)
class Session:
    role: Role
    direction: Direction
    root: str
    channel: Channel
    peer: str = ""

    def close(self) -> None:
        self.channel.close()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def role_for(config: SessionConfig) -> Role:
    return Role.LISTENER if not config.host else Role.INITIATOR


def negotiate_direction(role: Role, reverse: bool) -> Direction:
    """Listener receives and initiator sends, unless ``reverse`` swaps them."""
    sending = (role is Role.INITIATOR) != reverse
    return Direction.SEND if sending else Direction.RECEIVE


def validate_root(path: str) -> str:
    if not os.path.isdir(path):
        raise WalkError(f"not a directory: {path}")
    return os.path.realpath(path)


def open_session(config: SessionConfig, listener: Optional[TcpListener] = None) -> Session:
    root = validate_root(config.root)
    role = role_for(config)
    direction = negotiate_direction(role, config.reverse)

    if role is Role.LISTENER:
        owned = listener is None
        if listener is None:
            listener = TcpListener.bind(config.bind_host, config.port)
        host, port = listener.address
        logger.info("start listening on: %s:%d", host, port)
        try:
            channel = listener.accept(config.connect_timeout)
        finally:
            if owned:
                listener.close()
        peer = "%s:%d" % channel.peer
        logger.info("new connection from: %s", peer)
    else:
        channel = TcpChannel.connect(config.host, config.port, config.connect_timeout)
        peer = "%s:%d" % channel.peer
        logger.info("connected to: %s", peer)

    return Session(role=role, direction=direction, root=root, channel=channel, peer=peer)
