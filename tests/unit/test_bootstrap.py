from __future__ import annotations

from dataclasses import replace

import pytest

from feed_simulator.run_simulator import write_jsonl
from telemetry_app.bootstrap import build_app_system, build_notifier
from telemetry_app.core.config.yaml_config import SourceConfig, WebhookConfigData, parse_app_config
from telemetry_app.domain.errors import EmptySequenceError
from telemetry_app.domain.models import PlaybackMode, PlaybackState


def test_replay_config_loads_file(tmp_path, scheduler, make_samples) -> None:
    path = write_jsonl(tmp_path / "replay.jsonl", make_samples(10))
    cfg = parse_app_config({"source": {"mode": "replay", "replay_path": str(path)}})

    wiring = build_app_system(cfg=cfg, scheduler=scheduler)

    snap = wiring.engine.current_snapshot()
    assert snap.mode is PlaybackMode.REPLAY
    assert snap.state is PlaybackState.STOPPED
    assert snap.length == 10
    assert wiring.notifier is None

    wiring.engine.play()
    scheduler.advance(3.0)
    assert wiring.engine.current_snapshot().cursor == 3


def test_empty_replay_file_fails_fast(tmp_path, scheduler) -> None:
    path = tmp_path / "empty.jsonl"
    path.write_text("", encoding="utf-8")
    cfg = parse_app_config({})
    cfg = replace(cfg, source=SourceConfig(mode="replay", replay_path=str(path)), webhook=None)

    with pytest.raises(EmptySequenceError):
        build_app_system(cfg=cfg, scheduler=scheduler)


def test_live_config_builds_live_engine(scheduler) -> None:
    wiring = build_app_system(cfg=parse_app_config({}), scheduler=scheduler)
    assert wiring.engine.current_snapshot().mode is PlaybackMode.LIVE
    assert wiring.runtime._receiver is not None


def test_notifier_adds_bearer_prefix() -> None:
    worker = build_notifier(WebhookConfigData(url="http://x/events", auth_header="abc"))
    assert worker._notifiers[0]._cfg.auth_header == "Bearer abc"

    worker = build_notifier(WebhookConfigData(url="http://x/events", auth_header="Bearer abc"))
    assert worker._notifiers[0]._cfg.auth_header == "Bearer abc"
