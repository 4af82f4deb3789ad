"""
Unit tests for the runtime threads:
- IngestWorkerThread drains the append queue into the engine
- SampleReceiverThread pushes decoded samples and reconnects on errors
- NotificationAdapterThread turns staleness events into notifications
- AppRuntime wiring in replay mode (no I/O threads)
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from queue import Queue

from telemetry_app.core.engine import TelemetryEngine
from telemetry_app.domain.events import StalenessEvent, StalenessTransition
from telemetry_app.domain.models import PlaybackMode
from telemetry_app.runtime.app_runtime import AppRuntime, AppRuntimeConfig
from telemetry_app.runtime.event_bus import EventBus
from telemetry_app.runtime.ingest_worker_thread import IngestWorkerThread
from telemetry_app.runtime.notification_adapter_thread import NotificationAdapterThread
from telemetry_app.runtime.sample_receiver_thread import SampleReceiverConfig, SampleReceiverThread
from telemetry_app.services.controller import IngestController


def _wait_until(cond, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if cond():
            return True
        time.sleep(0.01)
    return cond()


def test_ingest_worker_appends_and_skips_rejects(scheduler, make_sample) -> None:
    engine = TelemetryEngine(scheduler=scheduler, clock=scheduler.now_ms)
    controller = IngestController(engine=engine)
    q: Queue = Queue()
    stop = threading.Event()
    worker = IngestWorkerThread(controller, q, stop)

    q.put(make_sample(0))
    q.put(make_sample(1))
    q.put(make_sample(0))  # older than the last sample, dropped
    q.put(make_sample(2))

    worker.start()
    try:
        assert _wait_until(lambda: controller.accepted + controller.rejected == 4)
    finally:
        worker.stop()
        worker.join()

    assert controller.accepted == 3
    assert controller.rejected == 1
    assert engine.current_snapshot().cursor == 2


class _ScriptedClient:
    """Yields its samples once, then fails like a dropped connection."""

    def __init__(self, samples):
        self._samples = samples
        self.closed = False

    def connect(self) -> None:
        pass

    def samples(self):
        yield from self._samples
        raise ConnectionResetError("peer closed")

    def close(self) -> None:
        self.closed = True


def test_receiver_reconnects_after_error(make_sample) -> None:
    q: Queue = Queue()
    stop = threading.Event()
    clients = []

    def factory(cfg):
        c = _ScriptedClient([make_sample(len(clients))])
        clients.append(c)
        return c

    rx = SampleReceiverThread(
        SampleReceiverConfig(host="x", port=1, reconnect_delay_s=0.01),
        samples_q=q,
        stop_event=stop,
        client_factory=factory,
    )
    rx.start()
    try:
        assert _wait_until(lambda: q.qsize() >= 2)
    finally:
        rx.stop()
        rx.join()

    assert len(clients) >= 2
    assert all(c.closed for c in clients[:-1])


def test_receiver_counts_drops_when_queue_full(make_sample) -> None:
    q: Queue = Queue(maxsize=1)
    stop = threading.Event()

    rx = SampleReceiverThread(
        SampleReceiverConfig(host="x", port=1, reconnect_delay_s=5.0),
        samples_q=q,
        stop_event=stop,
        client_factory=lambda cfg: _ScriptedClient([make_sample(0), make_sample(1), make_sample(2)]),
    )
    rx.start()
    try:
        assert _wait_until(lambda: rx.dropped == 2)
    finally:
        rx.stop()
        rx.join()
    assert q.qsize() == 1


class _RecordingNotifier:
    def __init__(self):
        self.events = []

    def emit(self, event) -> None:
        self.events.append(event)


def test_adapter_forwards_staleness_events(scheduler) -> None:
    engine = TelemetryEngine(scheduler=scheduler, clock=scheduler.now_ms)
    bus = EventBus()
    notifier = _RecordingNotifier()
    stop = threading.Event()
    adapter = NotificationAdapterThread(bus, engine, notifier, stop)

    bus.publish_staleness(
        StalenessEvent("M-01", StalenessTransition.RAISED, datetime(2026, 1, 1), 12_000.0, 10_000.0)
    )
    adapter.start()
    try:
        assert _wait_until(lambda: len(notifier.events) == 1)
    finally:
        adapter.stop()
        adapter.join()

    ev = notifier.events[0]
    assert ev.severity == "WARNING"
    assert ev.payload["event"]["transition"] == "RAISED"


def test_replay_runtime_starts_without_io_threads(scheduler, make_samples) -> None:
    engine = TelemetryEngine(scheduler=scheduler, clock=scheduler.now_ms, mode=PlaybackMode.REPLAY)
    engine.load_replay(make_samples(5))
    runtime = AppRuntime(
        AppRuntimeConfig(live=False, feed_host="127.0.0.1", feed_port=9010),
        engine=engine,
        bus=EventBus(),
    )

    assert runtime._threads() == []
    runtime.start()
    runtime.stop()
    assert scheduler.pending == 0
