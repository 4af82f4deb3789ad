"""
Shared test fakes.

- `ManualScheduler`: deterministic implementation of the engine `Scheduler`
  protocol. Nothing fires until the test advances virtual time, so replay
  ticks and staleness polls are exercised without real timers.
- `make_sample`: factory building valid samples with per-test overrides.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, List, Tuple

import pytest

from telemetry_app.domain.models import HealthStatus, MachineState, Sample

BASE_TS = 1_767_261_600_000  # 2026-01-01T10:00:00Z


@dataclass
class ManualCall:
    """Handle returned by :class:`ManualScheduler`."""

    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """
    Virtual-time scheduler.

    Attributes
    ----------
    now_s
        Current virtual time in seconds.
    """

    now_s: float = 0.0
    _queue: List[Tuple[float, int, Callable[[], None], ManualCall]] = field(default_factory=list)
    _seq: Any = field(default_factory=itertools.count)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ManualCall:
        handle = ManualCall()
        heapq.heappush(self._queue, (self.now_s + delay_s, next(self._seq), callback, handle))
        return handle

    def now_ms(self) -> float:
        """Clock function for components that track wall time."""
        return self.now_s * 1000.0

    @property
    def pending(self) -> int:
        return sum(1 for *_, h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing every due callback in order."""
        target = self.now_s + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, callback, handle = heapq.heappop(self._queue)
            self.now_s = max(self.now_s, due)
            if not handle.cancelled:
                callback()
        self.now_s = target


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


def _make_sample(i: int = 0, **overrides: Any) -> Sample:
    base = dict(
        ts=BASE_TS + i * 1000,
        machine_id="M-01",
        state=MachineState.RUN,
        mode="AUTO",
        status=HealthStatus.OK,
        vr=230.0,
        vy=230.0,
        vb=230.0,
        ir=10.0,
        iy=10.0,
        ib=10.0,
        kw=10.0,
        kwh_total=100.0 + i * 0.01,
        pf=0.9,
        count_total=i,
        temp_c=40.0,
        alarm_code=None,
    )
    base.update(overrides)
    return Sample(**base)


@pytest.fixture
def make_sample() -> Callable[..., Sample]:
    """Factory: make_sample(i, **overrides) -> Sample with ts = BASE_TS + i s."""
    return _make_sample


@pytest.fixture
def make_samples() -> Callable[..., List[Sample]]:
    """Factory: make_samples(n, **overrides) -> n consecutive samples."""

    def _build(n: int, **overrides: Any) -> List[Sample]:
        return [_make_sample(i, **overrides) for i in range(n)]

    return _build
