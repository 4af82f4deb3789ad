from __future__ import annotations

from typing import Dict, List

import pyqtgraph as pg
from PySide6.QtWidgets import QFrame, QGridLayout, QLabel, QVBoxLayout

from telemetry_app.core.visualization.preparer import VisualizationData
from telemetry_app.ui.adapters.snapshot_view import domain_text, series_xy
from telemetry_app.ui.theme import COLOR_ACCENT, COLOR_TEXT_MUTED

# field -> plot title
DEFAULT_TREND_FIELDS = {
    "kw": "Power (kW)",
    "temp_c": "Temperature (°C)",
    "pf": "Power Factor",
    "count_total": "Count Total",
}


class TrendPlotGrid(QFrame):
    """
    2x2 grid of small plots over the current KPI window.

    Each plot is fed a prepared :class:`VisualizationData`; x values are
    original sample indices so the plots line up with the seek slider.
    """

    def __init__(self, fields: Dict[str, str] | None = None, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName("Card")

        self.fields = dict(fields or DEFAULT_TREND_FIELDS)

        title = QLabel("Trends (KPI window)")
        title.setStyleSheet("font-size: 14px; font-weight: 700;")

        outer = QVBoxLayout(self)
        outer.setContentsMargins(12, 12, 12, 12)
        outer.setSpacing(10)
        outer.addWidget(title)

        grid = QGridLayout()
        grid.setSpacing(10)
        outer.addLayout(grid)

        self.plots: Dict[str, pg.PlotWidget] = {}
        self.curves: Dict[str, pg.PlotDataItem] = {}
        self.captions: Dict[str, QLabel] = {}

        pg.setConfigOptions(antialias=True)

        for idx, (name, label) in enumerate(self.fields.items()):
            cell = QVBoxLayout()
            plot = pg.PlotWidget()
            plot.setBackground(None)
            plot.showGrid(x=True, y=True, alpha=0.2)
            plot.setTitle(label, size="10pt")
            curve = plot.plot([], [], pen=pg.mkPen(COLOR_ACCENT, width=2))
            caption = QLabel("--")
            caption.setStyleSheet(f"color: {COLOR_TEXT_MUTED}; font-size: 10px;")
            cell.addWidget(plot)
            cell.addWidget(caption)

            self.plots[name] = plot
            self.curves[name] = curve
            self.captions[name] = caption

            r, c = divmod(idx, 2)
            grid.addLayout(cell, r, c)

    def set_series(self, field: str, data: VisualizationData) -> None:
        if field not in self.curves:
            return
        xs, ys = series_xy(data)
        self.curves[field].setData(xs, ys)
        self.captions[field].setText(domain_text(data))

    def clear(self) -> None:
        for name in self.curves:
            self.curves[name].setData([], [])
            self.captions[name].setText("--")

    def field_names(self) -> List[str]:
        return list(self.fields)
