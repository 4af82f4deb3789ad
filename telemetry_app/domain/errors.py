"""
Engine error taxonomy.

Every error raised by the engine derives from :class:`TelemetryError`, so the
presentation layer can catch one type. Where an error is also a contract
violation of a builtin kind (bad index, bad value, unknown key) it subclasses
that builtin as well.

Handling policy
---------------
- Data-shape errors on a single sample (`SampleDecodeError`,
  `OutOfOrderError`, `MachineMismatchError`) are isolated per sample: stream
  readers log and drop the sample, the stream continues.
- State-machine contract violations (`InvalidSpeedError`, `PlaybackModeError`,
  `NoDataError`, `IndexOutOfRangeError`) are rejected synchronously with no
  partial effect.
- `EmptySequenceError` is fatal to the load call only; prior state is kept.
"""

from __future__ import annotations


class TelemetryError(Exception):
    """Base class for all engine errors."""


class EmptySequenceError(TelemetryError):
    """A replay sequence was loaded with zero samples."""


class OutOfOrderError(TelemetryError):
    """A sample's timestamp is earlier than the last stored sample's."""

    def __init__(self, ts: int, last_ts: int):
        super().__init__(f"Sample ts={ts} is earlier than last stored ts={last_ts}")
        self.ts = ts
        self.last_ts = last_ts


class MachineMismatchError(TelemetryError):
    """A sample belongs to a different machine than the rest of the sequence."""

    def __init__(self, machine_id: str, expected: str):
        super().__init__(f"Sample machine_id={machine_id!r} does not match sequence machine_id={expected!r}")
        self.machine_id = machine_id
        self.expected = expected


class IndexOutOfRangeError(TelemetryError, IndexError):
    """An index or range falls outside the stored sequence."""


class NoDataError(TelemetryError):
    """An operation needs at least one sample but the store is empty."""


class InvalidSpeedError(TelemetryError, ValueError):
    """A replay speed outside the allowed discrete set was requested."""

    def __init__(self, factor: float, allowed: tuple):
        super().__init__(f"Speed {factor!r} not in allowed set {list(allowed)}")
        self.factor = factor
        self.allowed = allowed


class PlaybackModeError(TelemetryError):
    """An operation is not available in the current playback mode."""


class SampleDecodeError(TelemetryError, ValueError):
    """A raw record could not be turned into a valid Sample."""


class UnknownFieldError(TelemetryError, KeyError):
    """A chart field selector does not name a numeric sample field."""
