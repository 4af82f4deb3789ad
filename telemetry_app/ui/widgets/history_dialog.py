from __future__ import annotations

from typing import Callable, Iterable, List, Tuple

import pyqtgraph as pg
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
)

from telemetry_app.core.visualization.preparer import VisualizationData
from telemetry_app.ui.adapters.snapshot_view import DetailRow, domain_text, series_xy
from telemetry_app.ui.theme import COLOR_ACCENT, COLOR_TEXT_MUTED

# (field, start, end) -> prepared series
Preparer = Callable[[str, int, int], VisualizationData]


class HistoryDialog(QDialog):
    """
    Detail view: decimated overview of the full history plus the cursor sample.

    Zooming the overview re-prepares the visible index range, so the plotted
    series never exceeds the point budget at any zoom level.
    """

    def __init__(
        self,
        fields: Iterable[str],
        length: int,
        prepare: Preparer,
        rows: List[DetailRow],
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("History")
        self.resize(1000, 640)

        self._prepare = prepare
        self._length = length

        self.field_box = QComboBox()
        for f in fields:
            self.field_box.addItem(f)
        self.field_box.currentTextChanged.connect(lambda _: self._redraw(0, self._length))

        self.caption = QLabel("--")
        self.caption.setStyleSheet(f"color: {COLOR_TEXT_MUTED};")

        top = QHBoxLayout()
        top.addWidget(QLabel("Field"))
        top.addWidget(self.field_box)
        top.addStretch(1)
        top.addWidget(self.caption)

        self.plot = pg.PlotWidget()
        self.plot.setBackground(None)
        self.plot.showGrid(x=True, y=True, alpha=0.2)
        self.curve = self.plot.plot([], [], pen=pg.mkPen(COLOR_ACCENT, width=1.5))
        self.plot.sigXRangeChanged.connect(self._on_x_range)

        self.table = QTableWidget(len(rows), 2)
        self.table.setHorizontalHeaderLabels(["Field", "Value"])
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        for i, (name, value) in enumerate(rows):
            self.table.setItem(i, 0, QTableWidgetItem(name))
            self.table.setItem(i, 1, QTableWidgetItem(value))
        self.table.resizeColumnsToContents()

        layout = QVBoxLayout(self)
        layout.addLayout(top)
        layout.addWidget(self.plot, stretch=3)
        layout.addWidget(self.table, stretch=1)

        self._redraw(0, self._length)

    def _visible_range(self, lo: float, hi: float) -> Tuple[int, int]:
        start = max(0, min(self._length, int(lo)))
        end = max(start, min(self._length, int(hi) + 1))
        return start, end

    def _on_x_range(self, _plot, rng) -> None:
        start, end = self._visible_range(*rng)
        if end > start:
            self._redraw(start, end, autorange=False)

    def _redraw(self, start: int, end: int, autorange: bool = True) -> None:
        data = self._prepare(self.field_box.currentText(), start, end)
        xs, ys = series_xy(data)
        self.curve.setData(xs, ys)
        self.caption.setText(f"{len(data)} pts, stride {data.stride}  |  {domain_text(data)}")
        if autorange:
            self.plot.enableAutoRange()
