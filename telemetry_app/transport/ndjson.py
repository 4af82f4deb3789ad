from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

from telemetry_app.domain.errors import SampleDecodeError
from telemetry_app.domain.models import HealthStatus, MachineState, Sample

REQUIRED_FIELDS = (
    "ts",
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
)

FLOAT_FIELDS = ("vr", "vy", "vb", "ir", "iy", "ib", "kw", "kwh_total", "pf", "temp_c")


def _ts_to_ms(value: Any) -> int:
    """
    Convert a record timestamp to milliseconds since the epoch.

    Parameters
    ----------
    value
        Either a number of milliseconds or an ISO-8601 string
        (e.g., "2026-01-01T10:00:00Z"). Naive ISO strings are taken as UTC.

    Returns
    -------
    int
        Milliseconds since the Unix epoch.

    Raises
    ------
    ValueError
        If the value is neither numeric nor a valid ISO timestamp.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Invalid timestamp: {value!r}")
        return int(value)
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def _count_to_int(value: Any) -> int:
    """Unit counter as int; JSON integers are kept exact, floats must be integral."""
    if isinstance(value, bool):
        raise ValueError(f"count_total must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    count = float(value)
    if not count.is_integer():
        raise ValueError(f"count_total must be an integer, got {value!r}")
    return int(count)


def sample_from_dict(obj: Dict[str, Any]) -> Sample:
    """
    Decode a record dictionary into a :class:`~telemetry_app.domain.models.Sample`.

    Fields may appear in any order; unknown extra fields are ignored.

    Range/shape checks
    ------------------
    - all fields of :data:`REQUIRED_FIELDS` are present
    - `state` and `status` are known enum labels
    - `pf` lies in [0, 1] and `kw` is not negative
    - `count_total` is integral (JSON integers are kept exact)
    - every float field is finite (NaN and Infinity are rejected)

    Raises
    ------
    SampleDecodeError
        If any check or conversion fails.
    """
    missing = [k for k in REQUIRED_FIELDS if k not in obj]
    if missing:
        raise SampleDecodeError(f"Missing fields: {', '.join(missing)}")

    try:
        count = _count_to_int(obj["count_total"])
        alarm = obj.get("alarm_code")
        sample = Sample(
            ts=_ts_to_ms(obj["ts"]),
            machine_id=str(obj["machine_id"]),
            state=MachineState(str(obj["state"]).upper()),
            mode=str(obj["mode"]),
            status=HealthStatus(str(obj["status"]).upper()),
            vr=float(obj["vr"]),
            vy=float(obj["vy"]),
            vb=float(obj["vb"]),
            ir=float(obj["ir"]),
            iy=float(obj["iy"]),
            ib=float(obj["ib"]),
            kw=float(obj["kw"]),
            kwh_total=float(obj["kwh_total"]),
            pf=float(obj["pf"]),
            count_total=count,
            temp_c=float(obj["temp_c"]),
            alarm_code=str(alarm) if alarm not in (None, "") else None,
        )
    except (TypeError, ValueError) as e:
        raise SampleDecodeError(str(e)) from e

    bad = [name for name in FLOAT_FIELDS if not math.isfinite(getattr(sample, name))]
    if bad:
        raise SampleDecodeError(f"Non-finite values in: {', '.join(bad)}")
    if not 0.0 <= sample.pf <= 1.0:
        raise SampleDecodeError(f"pf out of range [0, 1]: {sample.pf}")
    if sample.kw < 0:
        raise SampleDecodeError(f"kw must not be negative: {sample.kw}")
    return sample


def sample_to_dict(sample: Sample) -> Dict[str, Any]:
    """Inverse of :func:`sample_from_dict` (timestamp kept as integer ms)."""
    return {
        "ts": sample.ts,
        "machine_id": sample.machine_id,
        "state": sample.state.value,
        "mode": sample.mode,
        "status": sample.status.value,
        "vr": sample.vr,
        "vy": sample.vy,
        "vb": sample.vb,
        "ir": sample.ir,
        "iy": sample.iy,
        "ib": sample.ib,
        "kw": sample.kw,
        "kwh_total": sample.kwh_total,
        "pf": sample.pf,
        "count_total": sample.count_total,
        "temp_c": sample.temp_c,
        "alarm_code": sample.alarm_code,
    }


def encode_sample(sample: Sample) -> str:
    """
    Encode a sample as one JSON object string (NDJSON payload).

    The caller is responsible for appending the trailing newline.
    """
    return json.dumps(sample_to_dict(sample))


def iter_json_objects(text: str) -> Iterator[Dict[str, Any]]:
    """
    Yield one or more JSON objects found in a string.

    This function is robust against inputs where multiple JSON objects are
    accidentally concatenated without delimiters, e.g.::

        '{"a": 1}{"b": 2}'

    Only dictionary objects are yielded (non-dict JSON like lists/strings are ignored).

    Parameters
    ----------
    text
        Input string potentially containing one or more JSON objects.

    Yields
    ------
    dict
        Parsed JSON objects (dictionaries) found in the input.

    Raises
    ------
    json.JSONDecodeError
        If the text contains something that is not JSON.
    """
    s = text.strip()
    if not s:
        return

    dec = json.JSONDecoder()
    i = 0
    n = len(s)

    while i < n:
        while i < n and s[i].isspace():
            i += 1
        if i >= n:
            break

        obj, end = dec.raw_decode(s, i)
        if isinstance(obj, dict):
            yield obj
        i = end


def decode_sample(line: str) -> Sample:
    """
    Decode an NDJSON line into a Sample.

    Lines may carry a server-sent-events prefix (``data: {...}``), which is
    stripped. If several JSON objects are concatenated on one line, the first
    one is decoded.

    Raises
    ------
    SampleDecodeError
        If the line holds no JSON object, is not valid JSON, or fails the
        sample checks.
    """
    s = line.strip()
    if s.startswith("data:"):
        s = s[len("data:"):]
    try:
        for obj in iter_json_objects(s):
            return sample_from_dict(obj)
    except json.JSONDecodeError as e:
        raise SampleDecodeError(f"Invalid JSON: {e}") from e

    raise SampleDecodeError("No JSON object found in line")
