from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from telemetry_app.domain.errors import (
    EmptySequenceError,
    IndexOutOfRangeError,
    MachineMismatchError,
    OutOfOrderError,
)
from telemetry_app.domain.models import Sample


def _check_sequence(samples: List[Sample]) -> None:
    """Validate ordering and single-machine ownership of a whole sequence."""
    machine = samples[0].machine_id
    prev_ts = samples[0].ts
    for s in samples[1:]:
        if s.machine_id != machine:
            raise MachineMismatchError(s.machine_id, machine)
        if s.ts < prev_ts:
            raise OutOfOrderError(s.ts, prev_ts)
        prev_ts = s.ts


@dataclass
class SequenceStore:
    """
    Ordered, append-only sample history for one session.

    - Live mode: grows through :meth:`append`.
    - Replay mode: replaced once through :meth:`load` and then only read.

    Notes
    -----
    - The store never reorders. A sample older than the last stored one is
      rejected and the caller decides whether to drop or queue it.
    - Thread-safety is not handled here; the enclosing `TelemetryEngine` is
      responsible for synchronization.

    Attributes
    ----------
    samples
        Stored samples in arrival order.
    """

    samples: List[Sample] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def is_empty(self) -> bool:
        return not self.samples

    @property
    def last_index(self) -> Optional[int]:
        """Index of the newest sample, or None when empty."""
        return len(self.samples) - 1 if self.samples else None

    @property
    def machine_id(self) -> Optional[str]:
        return self.samples[0].machine_id if self.samples else None

    def append(self, sample: Sample) -> None:
        """
        Append one sample at the end.

        Raises
        ------
        OutOfOrderError
            If `sample.ts` is strictly less than the last stored `ts`.
        MachineMismatchError
            If the sample belongs to another machine.
        """
        if self.samples:
            last = self.samples[-1]
            if sample.machine_id != last.machine_id:
                raise MachineMismatchError(sample.machine_id, last.machine_id)
            if sample.ts < last.ts:
                raise OutOfOrderError(sample.ts, last.ts)
        self.samples.append(sample)

    def load(self, samples: Iterable[Sample]) -> None:
        """
        Replace the whole store with `samples`.

        The new sequence is validated before it is swapped in, so a failed
        load leaves the previous contents untouched.

        Raises
        ------
        EmptySequenceError
            If `samples` is empty.
        OutOfOrderError, MachineMismatchError
            If the sequence is not time-ordered or mixes machines.
        """
        new = list(samples)
        if not new:
            raise EmptySequenceError("Cannot load an empty sequence")
        _check_sequence(new)
        self.samples = new

    def clear(self) -> None:
        self.samples = []

    def at(self, index: int) -> Sample:
        """
        Return the sample at `index`.

        Raises
        ------
        IndexOutOfRangeError
            If `index` is outside [0, length).
        """
        if not 0 <= index < len(self.samples):
            raise IndexOutOfRangeError(f"Index {index} outside [0, {len(self.samples)})")
        return self.samples[index]

    def slice(self, start: int, end: int) -> List[Sample]:
        """
        Return a copy of samples in [start, end).

        Raises
        ------
        IndexOutOfRangeError
            If the range does not satisfy 0 <= start <= end <= length.
        """
        n = len(self.samples)
        if not 0 <= start <= end <= n:
            raise IndexOutOfRangeError(f"Range [{start}, {end}) outside [0, {n})")
        return self.samples[start:end]
