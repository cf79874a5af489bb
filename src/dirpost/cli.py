from __future__ import annotations

import argparse
import json
import logging

from . import __version__
from .constants import DEFAULT_BIND_HOST, DEFAULT_DIRECTORY, DEFAULT_PORT, PROTOCOL_VERSION
from .engine import transfer
from .errors import DirpostError
from .session import SessionConfig

logger = logging.getLogger(__name__)

USAGE_EXAMPLES = """\
server mode (receiving): -d DIR -p PORT
client mode (  sending): -d DIR -p PORT -i HOST
server mode (  sending): -d DIR -p PORT -r
client mode (receiving): -d DIR -p PORT -r -i HOST
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dirpost",
        description="Send or receive a directory tree over one TCP connection.",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-d", "--directory", default=DEFAULT_DIRECTORY, help="directory to send from or receive to")
    p.add_argument("-i", "--ip-host", default="", help="host to connect to; omit to listen")
    p.add_argument("-p", "--port", type=int, default=DEFAULT_PORT, help="port to listen on or connect to")
    p.add_argument("-r", "--reverse", action="store_true", help="listener sends, initiator receives")
    p.add_argument("--bind-host", default=DEFAULT_BIND_HOST, help="address to listen on")
    p.add_argument("--connect-timeout", type=float, default=None, help="seconds to wait for connect/accept")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    p.add_argument("--json", action="store_true", help="print transfer metrics as JSON")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__} (protocol {PROTOCOL_VERSION})")
    return p


def config_from_args(args: argparse.Namespace) -> SessionConfig:
    return SessionConfig(
        root=args.directory,
        port=args.port,
        host=args.ip_host,
        reverse=args.reverse,
        bind_host=args.bind_host,
        connect_timeout=args.connect_timeout,
    )


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    if not 0 <= args.port <= 65535:
        p.error(f"port out of range: {args.port}")
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")

    config = config_from_args(args)
    logger.info("mode: %s %s", config.role.value, config.direction.value)
    logger.info("port: %d", config.port)
    logger.info(" dir: %s", config.root)

    try:
        metrics = transfer(config)
    except DirpostError as exc:
        logger.error("ERROR: %s: %s", exc.kind, exc)
        return 1

    payload = {"role": config.role.value, "direction": config.direction.value, **metrics.as_dict()}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
