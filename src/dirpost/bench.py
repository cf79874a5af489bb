from __future__ import annotations

import argparse
import json
import os
import shutil
import tempfile
import threading
from dataclasses import asdict, dataclass

from .engine import transfer
from .net import TcpListener
from .receiver import Metrics
from .session import SessionConfig


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    files: int
    bytes_transferred: int
    duration_s: float
    throughput_mbps: float


def build_tree(root: str, *, file_count: int, file_size: int, fanout: int = 8) -> None:
    payload = b"A" * file_size
    for i in range(file_count):
        sub = os.path.join(root, f"d{i % fanout:03d}")
        os.makedirs(sub, exist_ok=True)
        with open(os.path.join(sub, f"f{i:06d}.bin"), "wb") as f:
            f.write(payload)


def run_benchmark(*, file_count: int, file_size: int, reverse: bool = False) -> BenchmarkResult:
    src = tempfile.mkdtemp(prefix="dirpost-src-")
    dst = tempfile.mkdtemp(prefix="dirpost-dst-")
    try:
        build_tree(src, file_count=file_count, file_size=file_size)

        listener = TcpListener.bind("127.0.0.1", 0)
        _, port = listener.address
        # listener receives unless reversed
        listen_root, connect_root = (src, dst) if reverse else (dst, src)

        holder: dict[str, object] = {}

        def listen_runner() -> None:
            try:
                holder["m"] = transfer(SessionConfig(root=listen_root, port=port, reverse=reverse), listener)
            except Exception as exc:
                holder["err"] = exc
            finally:
                listener.close()

        t = threading.Thread(target=listen_runner, daemon=True)
        t.start()
        connect_metrics = transfer(SessionConfig(root=connect_root, host="127.0.0.1", port=port, reverse=reverse))
        t.join(timeout=30.0)

        if "err" in holder:
            raise holder["err"]  # type: ignore[misc]
        listen_metrics = holder["m"]
        assert isinstance(listen_metrics, Metrics)
        sender_metrics = listen_metrics if reverse else connect_metrics
        assert sender_metrics.files == file_count
    finally:
        shutil.rmtree(src, ignore_errors=True)
        shutil.rmtree(dst, ignore_errors=True)

    return BenchmarkResult(
        files=sender_metrics.files,
        bytes_transferred=sender_metrics.bytes_transferred,
        duration_s=sender_metrics.duration_s,
        throughput_mbps=sender_metrics.throughput_mbps,
    )


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="dirpost-bench", description="Loopback directory transfer benchmark.")
    p.add_argument("--file-count", type=int, default=200)
    p.add_argument("--file-size", type=int, default=256 * 1024)
    p.add_argument("--reverse", action="store_true")
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    r = run_benchmark(file_count=args.file_count, file_size=args.file_size, reverse=args.reverse)
    payload = {"role": "bench", **asdict(r)}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
