"""
Stress tests for TelemetryEngine concurrency.

These tests drive the engine from several threads at once and check that:
- live appends from the ingest thread never race with snapshot readers
- every snapshot is internally consistent (cursor, length, KPI window)
- replay driven by real timers reaches the end and auto-pauses

Notes
-----
Threading tests are probabilistic: they increase confidence but do not prove
the absence of races. Run multiple times for higher confidence.
"""

from __future__ import annotations

import threading
import time
from typing import List

import pytest

from telemetry_app.core.engine import TelemetryEngine
from telemetry_app.domain.models import PauseReason, PlaybackMode, PlaybackState
from telemetry_app.runtime.timer_scheduler import TimerScheduler

WINDOW = 60


@pytest.mark.stress
def test_live_appends_with_concurrent_readers(make_sample) -> None:
    engine = TelemetryEngine(scheduler=TimerScheduler(), window_size=WINDOW, staleness_poll_ms=50.0)
    engine.start()

    n = 3000
    start = threading.Barrier(5)  # 1 writer + 4 readers
    done = threading.Event()
    errors: List[BaseException] = []

    def writer() -> None:
        try:
            start.wait()
            for i in range(n):
                engine.append_live(make_sample(i))
        except BaseException as e:
            errors.append(e)
        finally:
            done.set()

    def reader(tid: int) -> None:
        try:
            start.wait()
            while not done.is_set():
                snap = engine.current_snapshot()
                if snap.length == 0:
                    assert snap.cursor is None
                    continue
                assert snap.cursor == snap.length - 1
                assert snap.kpis.sample_count == min(WINDOW, snap.length)

                if tid % 2 == 0:
                    window = engine.current_window()
                    assert 1 <= len(window) <= WINDOW
                    assert all(b.ts > a.ts for a, b in zip(window, window[1:]))
                else:
                    data = engine.prepare_visualization(0, snap.length, "kw")
                    assert len(data.points) <= engine.overview_max_points
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=writer)] + [
        threading.Thread(target=reader, args=(i,)) for i in range(4)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    engine.shutdown()
    assert not errors, f"Errors occurred: {errors!r}"

    snap = engine.current_snapshot()
    assert snap.mode is PlaybackMode.LIVE
    assert snap.length == n
    assert snap.cursor == n - 1
    assert snap.staleness_alert is False


@pytest.mark.stress
def test_timer_replay_reaches_end_while_polled(make_samples) -> None:
    engine = TelemetryEngine(scheduler=TimerScheduler(), window_size=WINDOW)
    engine.load_replay(make_samples(30))
    engine.set_speed(10.0)
    engine.play()

    errors: List[BaseException] = []
    cursors: List[int] = []

    def poll() -> None:
        try:
            deadline = time.monotonic() + 15.0
            while time.monotonic() < deadline:
                snap = engine.current_snapshot()
                cursors.append(snap.cursor)
                if snap.state is PlaybackState.PAUSED and engine.pause_reason is PauseReason.END_OF_SEQUENCE:
                    return
                time.sleep(0.005)
        except BaseException as e:
            errors.append(e)

    t = threading.Thread(target=poll)
    t.start()
    t.join(timeout=20)
    engine.shutdown()

    assert not errors, f"Errors occurred: {errors!r}"
    assert cursors == sorted(cursors)
    assert engine.current_snapshot().cursor == 29
    assert engine.pause_reason is PauseReason.END_OF_SEQUENCE


@pytest.mark.stress
def test_controls_from_many_threads_keep_single_timer(make_samples) -> None:
    """Hammering play/pause/seek/speed must leave the engine usable and in range."""
    engine = TelemetryEngine(scheduler=TimerScheduler(), window_size=WINDOW)
    engine.load_replay(make_samples(200))

    start = threading.Barrier(4)
    errors: List[BaseException] = []

    def hammer(tid: int) -> None:
        try:
            start.wait()
            for k in range(300):
                op = (tid + k) % 4
                if op == 0:
                    engine.play()
                elif op == 1:
                    engine.pause()
                elif op == 2:
                    engine.seek((tid * 37 + k) % 200)
                else:
                    engine.set_speed((0.5, 1.0, 2.0, 10.0)[k % 4])
                snap = engine.current_snapshot()
                assert 0 <= snap.cursor < 200
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=hammer, args=(i,)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    engine.pause()
    frozen = engine.current_snapshot().cursor
    time.sleep(0.3)
    engine.shutdown()

    assert not errors, f"Errors occurred: {errors!r}"
    assert engine.current_snapshot().cursor == frozen
