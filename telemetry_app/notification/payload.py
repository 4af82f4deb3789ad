from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from telemetry_app.domain.events import StalenessEvent
from telemetry_app.domain.models import EngineSnapshot


def _iso(ts: datetime) -> str:
    """ISO-8601 string with second precision."""
    return ts.isoformat(timespec="seconds")


def build_staleness_payload(snapshot: EngineSnapshot, ev: StalenessEvent) -> Dict[str, Any]:
    """
    Build a webhook payload for a staleness event plus the engine context.

    The payload includes:
    - "event": the staleness transition
    - "engine": mode/state/length and the last sample received, so the
      receiver can tell how old the data on screen is

    Parameters
    ----------
    snapshot
        Engine snapshot taken when the event is forwarded.
    ev
        Staleness event that triggered the webhook.

    Returns
    -------
    dict
        Webhook payload dictionary with keys: "type", "event", and "engine".
    """
    last = snapshot.sample
    event_payload = {
        "machine_id": ev.machine_id,
        "transition": ev.transition.value,
        "timestamp": _iso(ev.timestamp),
        "elapsed_ms": round(ev.elapsed_ms),
        "threshold_ms": round(ev.threshold_ms),
    }

    engine_payload = {
        "mode": snapshot.mode.value,
        "state": snapshot.state.value,
        "samples": snapshot.length,
        "last_sample_ts": None if last is None else _iso(last.timestamp),
        "last_status": None if last is None else last.status.value,
        "last_alarm_code": None if last is None else last.alarm_code,
    }

    return {
        "type": "staleness_event",
        "event": event_payload,
        "engine": engine_payload,
    }
