from __future__ import annotations

import logging
from typing import Optional

from .fs import LocalFilesystem
from .net import TcpListener
from .receiver import Metrics, TreeReceiver
from .sender import TreeSender
from .session import Direction, Session, SessionConfig, open_session
from .transport import StreamTransport

logger = logging.getLogger(__name__)


def run_session(session: Session) -> Metrics:
    transport = StreamTransport(session.channel)
    fs = LocalFilesystem(session.root)
    if session.direction is Direction.SEND:
        return TreeSender(transport, fs).run()
    return TreeReceiver(transport, fs).run()


def transfer(config: SessionConfig, listener: Optional[TcpListener] = None) -> Metrics:
    """Run one complete session: validate the root, connect, transfer, close."""
    with open_session(config, listener) as session:
        logger.info(
            "%s %s directory: %s (peer %s)",
            session.role.value,
            session.direction.value,
            session.root,
            session.peer,
        )
        return run_session(session)
