"""
Synthetic telemetry generator.

Produces a plausible 1 Hz stream for one machine: a small state machine
(RUN/IDLE/STOP/OFF) drives power draw, the unit counter and temperature.
Cumulative registers only move forward, except for an occasional counter
reset so consumers see the discontinuity they must tolerate.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from telemetry_app.domain.models import HealthStatus, MachineState, Sample

# state -> (next state, weight)
TRANSITIONS: Dict[MachineState, List[tuple]] = {
    MachineState.RUN: [(MachineState.RUN, 0.96), (MachineState.IDLE, 0.03), (MachineState.STOP, 0.01)],
    MachineState.IDLE: [(MachineState.IDLE, 0.85), (MachineState.RUN, 0.13), (MachineState.OFF, 0.02)],
    MachineState.STOP: [(MachineState.STOP, 0.7), (MachineState.IDLE, 0.3)],
    MachineState.OFF: [(MachineState.OFF, 0.9), (MachineState.IDLE, 0.1)],
}

BASE_KW = {
    MachineState.RUN: 11.0,
    MachineState.IDLE: 2.5,
    MachineState.STOP: 0.4,
    MachineState.OFF: 0.0,
}


@dataclass
class SampleGenerator:
    """
    Stateful generator of consecutive samples.

    Parameters
    ----------
    machine_id
        Machine identifier stamped on every sample.
    start_ts
        Timestamp (ms) of the first sample.
    interval_ms
        Spacing between samples.
    seed
        Random seed; the same seed yields the same sequence.
    counter_reset_prob
        Per-sample probability of a unit counter reset.
    """

    machine_id: str = "M-01"
    start_ts: int = 1_767_261_600_000  # 2026-01-01T10:00:00Z
    interval_ms: int = 1000
    seed: Optional[int] = None
    counter_reset_prob: float = 0.002

    _rng: random.Random = field(init=False, repr=False)
    _ts: int = field(init=False)
    _state: MachineState = field(init=False, default=MachineState.IDLE)
    _kwh: float = field(init=False, default=0.0)
    _count: int = field(init=False, default=0)
    _temp: float = field(init=False, default=32.0)

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)
        self._ts = self.start_ts

    def _next_state(self) -> MachineState:
        options = TRANSITIONS[self._state]
        states = [s for s, _ in options]
        weights = [w for _, w in options]
        return self._rng.choices(states, weights=weights, k=1)[0]

    def next_sample(self) -> Sample:
        rng = self._rng
        self._state = self._next_state()
        state = self._state

        kw = max(0.0, BASE_KW[state] + rng.gauss(0.0, 0.4 if state is MachineState.RUN else 0.1))
        if state is MachineState.OFF:
            kw = 0.0
        self._kwh += kw / 3600.0

        if state is MachineState.RUN:
            self._count += rng.choice((0, 1, 1, 2))
        if rng.random() < self.counter_reset_prob:
            self._count = 0

        target = 58.0 if state is MachineState.RUN else 30.0
        self._temp += (target - self._temp) * 0.01 + rng.gauss(0.0, 0.15)

        powered = state is not MachineState.OFF
        v = 230.0 if powered else 0.0
        i = kw / (3 * 0.23 * 0.9) if kw else 0.0
        pf = min(1.0, max(0.0, 0.9 + rng.gauss(0.0, 0.02))) if powered else 0.0

        status = HealthStatus.OK
        alarm = None
        if self._temp > 60.0:
            status, alarm = HealthStatus.WARNING, "TEMP_HIGH"
        if state is MachineState.STOP and rng.random() < 0.05:
            status, alarm = HealthStatus.FAULT, "E_STOP"

        sample = Sample(
            ts=self._ts,
            machine_id=self.machine_id,
            state=state,
            mode="AUTO" if state is MachineState.RUN else "MANUAL",
            status=status,
            vr=round(v + rng.gauss(0.0, 1.0) if powered else 0.0, 2),
            vy=round(v + rng.gauss(0.0, 1.0) if powered else 0.0, 2),
            vb=round(v + rng.gauss(0.0, 1.0) if powered else 0.0, 2),
            ir=round(max(0.0, i * (1 + rng.gauss(0.0, 0.03))), 3),
            iy=round(max(0.0, i * (1 + rng.gauss(0.0, 0.03))), 3),
            ib=round(max(0.0, i * (1 + rng.gauss(0.0, 0.03))), 3),
            kw=round(kw, 3),
            kwh_total=round(self._kwh, 4),
            pf=round(pf, 3),
            count_total=self._count,
            temp_c=round(self._temp, 2),
            alarm_code=alarm,
        )
        self._ts += self.interval_ms
        return sample

    def __iter__(self) -> Iterator[Sample]:
        while True:
            yield self.next_sample()

    def take(self, n: int) -> List[Sample]:
        return [self.next_sample() for _ in range(n)]
