"""
Chart data preparation.

Turns an arbitrary sub-range of the sequence into a bounded number of points
for interactive charts, plus the mapping between decimated point positions
and original sequence indices that zoom/pan/brush interactions need.

Decimation is strict stride sampling: every ``ceil(length / N)``-th raw
sample is kept as-is. Values are never interpolated or averaged, so hovering a
plotted point always shows an exact original reading. Summary statistics are
computed over the full un-decimated range; only the plotted points are
thinned.

The preparer is stateless. Zoom and pan state belongs to the presentation
layer, which re-invokes :func:`prepare_visualization` with a new range or `N`
as the user zooms.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from telemetry_app.core.state.sequence_store import SequenceStore
from telemetry_app.domain.errors import IndexOutOfRangeError, UnknownFieldError
from telemetry_app.domain.models import NUMERIC_FIELDS

DEFAULT_OVERVIEW_POINTS = 500


@dataclass(frozen=True)
class ChartPoint:
    """One plotted point: original index, raw value and sample timestamp (ms)."""

    index: int
    value: float
    ts: int


@dataclass(frozen=True)
class ValueDomain:
    """Summary statistics over the full (un-decimated) range."""

    min: float
    max: float
    mean: float
    current: float

    @property
    def span(self) -> float:
        """max - min, or 1.0 for a flat series (safe as a divisor)."""
        return (self.max - self.min) or 1.0


@dataclass(frozen=True)
class VisualizationData:
    """
    Decimated chart series for one field over [start, end).

    Parameters
    ----------
    field
        Sample field that was selected.
    start, end
        Original index range.
    stride
        Distance between consecutive points in original indices.
    points
        Decimated points, ordered by index.
    domain
        Statistics over the whole range, None for an empty range.
    """

    field: str
    start: int
    end: int
    stride: int
    points: Tuple[ChartPoint, ...]
    domain: Optional[ValueDomain]

    @property
    def range_length(self) -> int:
        return self.end - self.start

    def __len__(self) -> int:
        return len(self.points)

    def original_index(self, position: int) -> int:
        """
        Map a decimated point position to its original sequence index.

        Raises
        ------
        IndexOutOfRangeError
            If `position` is not a valid point position.
        """
        if not 0 <= position < len(self.points):
            raise IndexOutOfRangeError(f"Point position {position} outside [0, {len(self.points)})")
        return self.points[position].index

    def position_for(self, index: int) -> int:
        """
        Map an original index inside [start, end) to the nearest decimated point.

        Raises
        ------
        IndexOutOfRangeError
            If `index` lies outside the prepared range.
        """
        if not self.start <= index < self.end:
            raise IndexOutOfRangeError(f"Index {index} outside prepared range [{self.start}, {self.end})")
        pos = int(round((index - self.start) / self.stride))
        return min(pos, len(self.points) - 1)

    def positions_between(self, lo: int, hi: int) -> Tuple[int, int]:
        """
        Decimated positions covering the original index range [lo, hi].

        Used to translate a brush or zoom expressed in full-range indices.
        Indices are clamped to the prepared range.
        """
        if not self.points:
            raise IndexOutOfRangeError("No points prepared")
        if lo > hi:
            lo, hi = hi, lo
        lo = max(lo, self.start)
        hi = min(hi, self.end - 1)
        first = min(math.ceil((lo - self.start) / self.stride), len(self.points) - 1)
        last = max((hi - self.start) // self.stride, first)
        return first, last

    def x_fraction(self, position: int) -> float:
        """
        Horizontal plot coordinate in [0, 1] of a point position.

        A single point sits at 0.0.
        """
        n = len(self.points)
        if not 0 <= position < n:
            raise IndexOutOfRangeError(f"Point position {position} outside [0, {n})")
        if n == 1:
            return 0.0
        return position / (n - 1)

    def y_fraction(self, value: float) -> float:
        """Vertical plot coordinate in [0, 1] of a value within the domain."""
        if self.domain is None:
            return 0.0
        return (value - self.domain.min) / self.domain.span


def decimation_stride(range_length: int, max_points: Optional[int]) -> int:
    """Stride that keeps at most `max_points` points (1 when unbounded)."""
    if max_points is None or range_length <= 0:
        return 1
    return max(1, math.ceil(range_length / max_points))


def prepare_visualization(
    store: SequenceStore,
    start: int,
    end: int,
    field: str,
    max_points: Optional[int] = DEFAULT_OVERVIEW_POINTS,
) -> VisualizationData:
    """
    Prepare one chart series.

    Parameters
    ----------
    store
        Sequence to read from. It is not modified.
    start, end
        Original index range [start, end).
    field
        Numeric sample field to plot (see :data:`NUMERIC_FIELDS`).
    max_points
        Upper bound on returned points; None for unbounded (sparklines).

    Returns
    -------
    VisualizationData
        Decimated points, full-range statistics and index mapping.

    Raises
    ------
    UnknownFieldError
        If `field` is not a numeric sample field.
    ValueError
        If `max_points` is less than 1.
    IndexOutOfRangeError
        If the range is not within [0, length].
    """
    if field not in NUMERIC_FIELDS:
        raise UnknownFieldError(field)
    if max_points is not None and max_points < 1:
        raise ValueError(f"max_points must be >= 1, got {max_points}")

    samples = store.slice(start, end)
    stride = decimation_stride(len(samples), max_points)
    if not samples:
        return VisualizationData(field=field, start=start, end=end, stride=stride, points=(), domain=None)

    values = [s.value_of(field) for s in samples]
    points = tuple(
        ChartPoint(index=start + i, value=values[i], ts=samples[i].ts)
        for i in range(0, len(samples), stride)
    )
    domain = ValueDomain(
        min=min(values),
        max=max(values),
        mean=sum(values) / len(values),
        current=values[-1],
    )
    return VisualizationData(field=field, start=start, end=end, stride=stride, points=points, domain=domain)
