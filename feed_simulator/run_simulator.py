from __future__ import annotations

import argparse
import itertools
import threading
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterator, List, Optional

from feed_simulator.generator import SampleGenerator
from feed_simulator.transport.server_config import HOST, PORT
from feed_simulator.transport.tcp_server import TCPPublishServer
from telemetry_app.domain.models import Sample
from telemetry_app.transport.jsonl_reader import read_samples
from telemetry_app.transport.ndjson import encode_sample
from telemetry_app.utils.logger import get_logger

logger = get_logger("feed_simulator")


def looped(samples: List[Sample], now_ms=lambda: int(time.time() * 1000)) -> Iterator[Sample]:
    """
    Cycle over a recorded sequence forever, re-stamping each sample with the
    current wall time so the stream stays time-ordered across loop wraps.

    Cumulative counters restart at the wrap, which consumers treat as a reset.
    """
    if not samples:
        raise ValueError("cannot loop an empty sequence")
    for s in itertools.cycle(samples):
        yield replace(s, ts=now_ms())


def live_generated(gen: SampleGenerator, now_ms=lambda: int(time.time() * 1000)) -> Iterator[Sample]:
    """Generator samples stamped with the current wall time."""
    for s in gen:
        yield replace(s, ts=now_ms())


def write_jsonl(path: str | Path, samples: List[Sample]) -> Path:
    """Dump samples as a JSONL replay file."""
    out = Path(path).expanduser().resolve()
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        for s in samples:
            f.write(encode_sample(s) + "\n")
    return out


def tcp_publish_loop(
    server: TCPPublishServer,
    source: Iterator[Sample],
    stop_flag: threading.Event,
    interval_s: float = 1.0,
) -> None:
    """
    Accept a client and push one sample per `interval_s` until it disconnects.

    The source is shared across clients, so a reconnecting dashboard resumes
    where the previous one stopped.
    """
    server.start()

    while not stop_flag.is_set():
        try:
            server.accept_one()
        except OSError:
            break

        logger.info("Streaming samples every %.2fs", interval_s)
        next_at = time.monotonic()

        while not stop_flag.is_set():
            if not server.send(next(source)):
                break
            next_at += interval_s
            stop_flag.wait(max(0.0, next_at - time.monotonic()))


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Machine telemetry feed simulator (NDJSON over TCP)")
    p.add_argument("--host", default=HOST)
    p.add_argument("--port", type=int, default=PORT)
    p.add_argument("--file", default=None, help="JSONL file to replay in a loop (default: synthetic)")
    p.add_argument("--interval", type=float, default=1.0, help="Seconds between samples")
    p.add_argument("--machine-id", default="M-01")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--write", metavar="PATH", default=None, help="Write a synthetic JSONL file and exit")
    p.add_argument("--seconds", type=int, default=1200, help="Samples to write with --write")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    if args.write:
        gen = SampleGenerator(machine_id=args.machine_id, seed=args.seed)
        out = write_jsonl(args.write, gen.take(args.seconds))
        logger.info("Wrote %d samples to %s", args.seconds, out)
        return

    if args.file:
        source = looped(read_samples(args.file))
    else:
        source = live_generated(SampleGenerator(machine_id=args.machine_id, seed=args.seed))

    server = TCPPublishServer(host=args.host, port=args.port)
    stop_flag = threading.Event()
    t = threading.Thread(
        target=tcp_publish_loop,
        args=(server, source, stop_flag, args.interval),
        name="feed-publisher",
        daemon=True,
    )
    t.start()

    try:
        while t.is_alive():
            t.join(timeout=0.5)
    except KeyboardInterrupt:
        logger.info("Stopping feed simulator")
    finally:
        stop_flag.set()
        server.close()


if __name__ == "__main__":
    main()
