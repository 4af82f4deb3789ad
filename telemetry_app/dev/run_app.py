from __future__ import annotations

import argparse
import sys
from dataclasses import replace

from PySide6.QtWidgets import QApplication

from telemetry_app.bootstrap import build_app_system
from telemetry_app.core.config.yaml_config import SourceConfig, load_app_config
from telemetry_app.ui.main_dashboard import MainWindow
from telemetry_app.ui.qt_scheduler import QtScheduler
from telemetry_app.ui.theme import APP_QSS


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Machine telemetry dashboard")
    p.add_argument("--config", default=None, help="Path to config.yaml")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--replay", metavar="PATH", default=None, help="Replay a JSONL file")
    src.add_argument("--live", action="store_true", help="Tail the live TCP feed")
    return p.parse_args(argv)


def main() -> None:
    """
    Start the desktop UI and runtime threads.

    Notes
    -----
    - Loads configuration from `config.yaml` by default.
    - Optional CLI usage:
        python -m telemetry_app.dev.run_app --config path/to/config.yaml
        python -m telemetry_app.dev.run_app --replay data/line1.jsonl
    """
    args = parse_args(sys.argv[1:])
    app = QApplication(sys.argv)
    app.setStyleSheet(APP_QSS)

    cfg = load_app_config(args.config)
    if args.replay:
        cfg = replace(cfg, source=SourceConfig(mode="replay", replay_path=args.replay))
    elif args.live:
        cfg = replace(cfg, source=SourceConfig(mode="live"))

    wiring = build_app_system(cfg=cfg, scheduler=QtScheduler(app))

    win = MainWindow(engine=wiring.engine, config=wiring.config)
    win.show()

    wiring.runtime.start()

    def _stop_all() -> None:
        wiring.runtime.stop()
        if wiring.notifier is not None:
            wiring.notifier.stop()

    app.aboutToQuit.connect(_stop_all)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
