from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from telemetry_app.domain.models import Sample

EXPORT_COLUMNS: List[str] = [
    "timestamp",
    "machine_id",
    "state",
    "mode",
    "status",
    "vr",
    "vy",
    "vb",
    "ir",
    "iy",
    "ib",
    "kw",
    "kwh_total",
    "pf",
    "count_total",
    "temp_c",
    "alarm_code",
]


def format_ts(ts_ms: int) -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    dt = datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sample_row(sample: Sample) -> List[str]:
    """One export row in :data:`EXPORT_COLUMNS` order."""
    return [
        format_ts(sample.ts),
        sample.machine_id,
        sample.state.value,
        sample.mode,
        sample.status.value,
        repr(sample.vr),
        repr(sample.vy),
        repr(sample.vb),
        repr(sample.ir),
        repr(sample.iy),
        repr(sample.ib),
        repr(sample.kw),
        repr(sample.kwh_total),
        repr(sample.pf),
        str(sample.count_total),
        repr(sample.temp_c),
        sample.alarm_code or "",
    ]


def export_samples(samples: Iterable[Sample], delimiter: str = ",") -> str:
    """
    Serialize samples as a delimited text table with a header row.

    Parameters
    ----------
    samples
        Already-selected window (typically the currently displayed one).
    delimiter
        Single-character field delimiter.

    Returns
    -------
    str
        Table text; a missing `alarm_code` is an empty field.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for s in samples:
        writer.writerow(sample_row(s))
    return buf.getvalue()


def write_export(path: str | Path, samples: Iterable[Sample], delimiter: str = ",") -> Path:
    """Write :func:`export_samples` output to `path` and return the resolved path."""
    out = Path(path).expanduser().resolve()
    out.write_text(export_samples(samples, delimiter=delimiter), encoding="utf-8")
    return out
