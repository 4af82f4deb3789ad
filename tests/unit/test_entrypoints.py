from __future__ import annotations

import feed_simulator.run_simulator as run_simulator
from entrypoints import run_simulator_main


def test_launcher_returns_zero_on_clean_exit(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(run_simulator, "main", lambda: calls.append("run"))
    assert run_simulator_main.main() == 0
    assert calls == ["run"]


def test_launcher_logs_and_waits_on_crash(monkeypatch) -> None:
    def boom() -> None:
        raise RuntimeError("port in use")

    prompts = []
    monkeypatch.setattr(run_simulator, "main", boom)
    monkeypatch.setattr("builtins.input", lambda msg="": prompts.append(msg) or "")

    assert run_simulator_main.main() == 1
    assert len(prompts) == 1


def test_launcher_treats_ctrl_c_as_clean_exit(monkeypatch) -> None:
    def interrupted() -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(run_simulator, "main", interrupted)
    assert run_simulator_main.main() == 0
