from __future__ import annotations

from typing import Dict, List

from PySide6.QtWidgets import QFrame, QGridLayout, QLabel, QVBoxLayout

from telemetry_app.ui.adapters.snapshot_view import KpiCard
from telemetry_app.ui.theme import COLOR_TEXT_MUTED, level_color


class _KpiCardWidget(QFrame):
    def __init__(self, title: str, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName("Card")

        self._title = QLabel(title)
        self._title.setStyleSheet(f"color: {COLOR_TEXT_MUTED}; font-size: 11px; font-weight: 600;")
        self._value = QLabel("--")
        self._value.setStyleSheet("font-size: 18px; font-weight: 700;")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(4)
        layout.addWidget(self._title)
        layout.addWidget(self._value)

    def set_value(self, text: str, level: str) -> None:
        self._value.setText(text)
        self._value.setStyleSheet(f"color: {level_color(level)}; font-size: 18px; font-weight: 700;")


class KpiPanel(QFrame):
    """
    Grid of KPI cards.

    Cards are created lazily on the first update so their order follows the
    rows produced by :func:`~telemetry_app.ui.adapters.snapshot_view.kpi_cards`.
    """

    def __init__(self, columns: int = 4, parent=None) -> None:
        super().__init__(parent)
        self._columns = columns
        self._cards: Dict[str, _KpiCardWidget] = {}

        self._grid = QGridLayout(self)
        self._grid.setContentsMargins(0, 0, 0, 0)
        self._grid.setSpacing(10)

    def set_cards(self, cards: List[KpiCard]) -> None:
        for title, text, level in cards:
            card = self._cards.get(title)
            if card is None:
                card = _KpiCardWidget(title)
                r, c = divmod(len(self._cards), self._columns)
                self._grid.addWidget(card, r, c)
                self._cards[title] = card
            card.set_value(text, level)
