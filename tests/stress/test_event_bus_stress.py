"""
Stress tests for EventBus.

The engine publishes staleness events from scheduler callbacks, possibly on
several timer threads at once; publishing must never block or raise, and
every event is either queued or counted as dropped.
"""

from __future__ import annotations

import threading
from datetime import datetime
from queue import Queue
from typing import List

import pytest

from telemetry_app.domain.events import StalenessEvent, StalenessTransition
from telemetry_app.runtime.event_bus import EventBus


def _ev(i: int) -> StalenessEvent:
    transition = StalenessTransition.RAISED if i % 2 == 0 else StalenessTransition.CLEARED
    return StalenessEvent(f"M-{i % 3}", transition, datetime(2026, 1, 1), float(i), 10_000.0)


@pytest.mark.stress
def test_event_bus_many_producers_no_loss_when_capacity_allows() -> None:
    bus = EventBus()
    n_threads, per_thread = 8, 100  # 800 < default capacity
    start = threading.Barrier(n_threads)
    errors: List[BaseException] = []

    def producer() -> None:
        try:
            start.wait()
            for i in range(per_thread):
                bus.publish_staleness(_ev(i))
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=producer) for _ in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert not errors
    assert bus.dropped == 0
    assert bus.staleness_q.qsize() == n_threads * per_thread


@pytest.mark.stress
def test_event_bus_overflow_is_counted_not_raised() -> None:
    bus = EventBus(staleness_q=Queue(maxsize=50))
    n_threads, per_thread = 6, 200
    start = threading.Barrier(n_threads)

    def producer() -> None:
        start.wait()
        for i in range(per_thread):
            bus.publish_staleness(_ev(i))

    threads = [threading.Thread(target=producer) for _ in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert bus.staleness_q.qsize() == 50
    # `dropped += 1` is not atomic across threads; it may undercount but never overcounts
    assert 0 < bus.dropped <= n_threads * per_thread - 50
