from __future__ import annotations

from datetime import datetime

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QFileDialog, QHBoxLayout, QLabel, QMainWindow, QSplitter, QVBoxLayout, QWidget

from telemetry_app.core.config.yaml_config import AppConfig
from telemetry_app.core.engine import TelemetryEngine
from telemetry_app.domain.errors import TelemetryError
from telemetry_app.domain.models import NUMERIC_FIELDS, PlaybackState
from telemetry_app.export.table_export import write_export
from telemetry_app.ui.adapters.snapshot_view import (
    detail_rows,
    header_text,
    kpi_cards,
    playback_text,
    progress_text,
    staleness_text,
    status_level,
)
from telemetry_app.ui.widgets.history_dialog import HistoryDialog
from telemetry_app.ui.widgets.kpi_panel import KpiPanel
from telemetry_app.ui.widgets.playback_bar import PlaybackBar
from telemetry_app.ui.widgets.status_indicator import StatusIndicator
from telemetry_app.ui.widgets.trend_plot import TrendPlotGrid
from telemetry_app.utils.logger import get_logger

logger = get_logger(__name__)


class MainWindow(QMainWindow):
    """
    Main dashboard window.
    - Top: machine header, health status, staleness badge
    - Middle: KPI cards + trend plots of the KPI window
    - Bottom: playback bar (replay controls, export, history)

    The window only reads engine snapshots on a refresh timer and forwards
    user intents to the engine; it computes nothing itself.
    """

    def __init__(self, engine: TelemetryEngine, config: AppConfig) -> None:
        super().__init__()
        self.setWindowTitle("Machine Telemetry Dashboard")
        self.resize(1400, 860)

        self.engine = engine
        self.config = config

        root = QWidget()
        self.setCentralWidget(root)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(12)

        # Top bar
        top = QHBoxLayout()
        self.header = QLabel("No data")
        self.header.setStyleSheet("font-size: 16px; font-weight: 700;")
        self.health = StatusIndicator("Status")
        self.staleness = StatusIndicator("Live")
        self.playback_state = QLabel("")
        self.playback_state.setStyleSheet("font-weight: 700;")
        top.addWidget(self.header)
        top.addStretch(1)
        top.addWidget(self.playback_state)
        top.addWidget(self.health)
        top.addWidget(self.staleness)
        layout.addLayout(top)

        # Middle: KPI cards + trends (splitter)
        splitter = QSplitter()
        splitter.setChildrenCollapsible(False)

        self.kpi_panel = KpiPanel(columns=3)
        self.trends = TrendPlotGrid()

        splitter.addWidget(self.kpi_panel)
        splitter.addWidget(self.trends)
        splitter.setStretchFactor(0, 2)
        splitter.setStretchFactor(1, 3)
        layout.addWidget(splitter, stretch=1)

        # Bottom: playback controls
        self.playback = PlaybackBar(
            speeds=config.engine.allowed_speeds,
            on_toggle=self._toggle_play,
            on_reset=lambda: self._guarded(self.engine.reset),
            on_speed=lambda f: self._guarded(self.engine.set_speed, f),
            on_seek=lambda i: self._guarded(self.engine.seek, i),
            on_export=self._export_window,
            on_details=self._open_history,
        )
        layout.addWidget(self.playback)

        # UI refresh timer
        self.timer = QTimer(self)
        self.timer.setInterval(200)  # 5 Hz refresh
        self.timer.timeout.connect(self.refresh_ui)
        self.timer.start()

    def refresh_ui(self) -> None:
        snap = self.engine.current_snapshot()
        e = self.config.engine

        self.header.setText(header_text(snap))
        self.playback_state.setText(playback_text(snap, self.engine.pause_reason))

        if snap.sample is None:
            self.health.set_level("MUTED", "No data")
        else:
            status = snap.sample.status
            text = status.value if not snap.sample.alarm_code else f"{status.value}: {snap.sample.alarm_code}"
            self.health.set_level(status_level(status), text)

        text, level = staleness_text(snap)
        self.staleness.set_level(level, text)

        self.kpi_panel.set_cards(kpi_cards(snap.kpis, e.temp_high_c, e.temp_normal_c))
        self.playback.update_from(snap, progress_text(snap))

        if snap.cursor is None:
            self.trends.clear()
            return

        start, end = self.engine.aggregator.window_bounds(snap.cursor)
        for name in self.trends.field_names():
            self.trends.set_series(name, self.engine.prepare_visualization(start, end, name, None))

    def _guarded(self, fn, *args) -> None:
        try:
            fn(*args)
        except TelemetryError as e:
            logger.warning("UI action rejected: %s", e)
            self.statusBar().showMessage(str(e), 4000)
        self.refresh_ui()

    def _toggle_play(self) -> None:
        if self.engine.current_snapshot().state is PlaybackState.PLAYING:
            self._guarded(self.engine.pause)
        else:
            self._guarded(self.engine.play)

    def _export_window(self) -> None:
        samples = self.engine.current_window()
        if not samples:
            self.statusBar().showMessage("Nothing to export", 4000)
            return

        default_name = f"telemetry_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        path, _ = QFileDialog.getSaveFileName(self, "Export window", default_name, "CSV (*.csv)")
        if not path:
            return
        try:
            out = write_export(path, samples, delimiter=self.config.export.delimiter)
        except OSError as e:
            logger.error("Export failed: %r", e)
            self.statusBar().showMessage(f"Export failed: {e}", 6000)
            return
        logger.info("Exported %d samples to %s", len(samples), out)
        self.statusBar().showMessage(f"Exported {len(samples)} samples", 4000)

    def _open_history(self) -> None:
        snap = self.engine.current_snapshot()
        if snap.length == 0:
            self.statusBar().showMessage("No data", 4000)
            return

        dialog = HistoryDialog(
            fields=NUMERIC_FIELDS,
            length=snap.length,
            prepare=lambda field, start, end: self.engine.prepare_visualization(start, end, field),
            rows=detail_rows(snap),
            parent=self,
        )
        dialog.exec()
