from __future__ import annotations

from typing import Callable, Iterable, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QComboBox, QFrame, QHBoxLayout, QLabel, QPushButton, QSlider

from telemetry_app.domain.models import EngineSnapshot, PlaybackMode, PlaybackState
from telemetry_app.ui.adapters.snapshot_view import speed_label


class PlaybackBar(QFrame):
    """
    Replay controls: play/pause, reset, speed selector, seek slider and progress.

    The bar holds no playback state. It forwards user intents through the
    callbacks and mirrors the engine snapshot in :meth:`update_from`.
    Controls are disabled in live mode.
    """

    def __init__(
        self,
        speeds: Iterable[float],
        on_toggle: Callable[[], None],
        on_reset: Callable[[], None],
        on_speed: Callable[[float], None],
        on_seek: Callable[[int], None],
        on_export: Optional[Callable[[], None]] = None,
        on_details: Optional[Callable[[], None]] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setObjectName("Card")

        self._speeds = list(speeds)
        self._on_speed = on_speed
        self._on_seek = on_seek
        self._syncing = False

        self.play_btn = QPushButton("Play")
        self.play_btn.clicked.connect(on_toggle)

        self.reset_btn = QPushButton("Reset")
        self.reset_btn.clicked.connect(on_reset)

        self.speed_box = QComboBox()
        for s in self._speeds:
            self.speed_box.addItem(speed_label(s), s)
        self.speed_box.currentIndexChanged.connect(self._speed_changed)

        self.slider = QSlider(Qt.Horizontal)
        self.slider.setMinimum(0)
        self.slider.setMaximum(0)
        self.slider.sliderReleased.connect(self._seek_released)

        self.progress = QLabel("0 / 0")
        self.progress.setMinimumWidth(140)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(10)
        layout.addWidget(self.play_btn)
        layout.addWidget(self.reset_btn)
        layout.addWidget(self.speed_box)
        layout.addWidget(self.slider, stretch=1)
        layout.addWidget(self.progress)

        if on_details is not None:
            details_btn = QPushButton("History")
            details_btn.clicked.connect(on_details)
            layout.addWidget(details_btn)
        if on_export is not None:
            export_btn = QPushButton("Export CSV")
            export_btn.clicked.connect(on_export)
            layout.addWidget(export_btn)

    def update_from(self, snap: EngineSnapshot, progress_text: str) -> None:
        replay = snap.mode is PlaybackMode.REPLAY
        self._syncing = True
        try:
            self.play_btn.setEnabled(replay and snap.length > 0)
            self.reset_btn.setEnabled(snap.length > 0)
            self.speed_box.setEnabled(replay)
            self.slider.setEnabled(replay and snap.length > 0)

            self.play_btn.setText("Pause" if snap.state is PlaybackState.PLAYING else "Play")

            idx = self.speed_box.findData(snap.speed)
            if idx >= 0 and idx != self.speed_box.currentIndex():
                self.speed_box.setCurrentIndex(idx)

            self.slider.setMaximum(max(0, snap.length - 1))
            if not self.slider.isSliderDown() and snap.cursor is not None:
                self.slider.setValue(snap.cursor)

            self.progress.setText(progress_text)
        finally:
            self._syncing = False

    def _speed_changed(self, index: int) -> None:
        if self._syncing or index < 0:
            return
        self._on_speed(float(self.speed_box.itemData(index)))

    def _seek_released(self) -> None:
        self._on_seek(self.slider.value())
