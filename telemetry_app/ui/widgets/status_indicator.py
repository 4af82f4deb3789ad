from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel

from telemetry_app.ui.theme import level_color

_DOT_QSS = "color: {color}; font-size: 14px;"
_TEXT_QSS = "color: {color}; font-weight: 600; letter-spacing: 0.5px;"


class StatusIndicator(QFrame):
    """
    Header badge: a level-colored dot followed by a short caption.

    Used for the machine health status and the live/stale feed badge. Levels
    are the ones produced by :mod:`telemetry_app.ui.adapters.snapshot_view`.
    """

    def __init__(self, text: str = "", parent=None) -> None:
        super().__init__(parent)
        self.setObjectName("Card")
        self.level = "MUTED"

        self._dot = QLabel("●")
        self._caption = QLabel(text)

        row = QHBoxLayout(self)
        row.setContentsMargins(10, 6, 12, 6)
        row.setSpacing(6)
        row.addWidget(self._dot, 0, Qt.AlignVCenter)
        row.addWidget(self._caption, 0, Qt.AlignVCenter)
        self._paint()

    def set_level(self, level: str, text: str) -> None:
        self._caption.setText(text)
        self.setToolTip(f"{text} ({level})")
        if level != self.level:
            self.level = level
            self._paint()

    def _paint(self) -> None:
        color = level_color(self.level)
        self._dot.setStyleSheet(_DOT_QSS.format(color=color))
        self._caption.setStyleSheet(_TEXT_QSS.format(color=color))
