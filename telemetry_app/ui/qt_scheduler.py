from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QTimer


class _QtCall:
    """Handle for one pending single-shot timer."""

    def __init__(self, timer: QTimer, callback: Callable[[], None]):
        self._timer = timer
        self._callback = callback
        self._done = False
        timer.timeout.connect(self._fire)

    def _fire(self) -> None:
        if self._done:
            return
        self._release()
        self._callback()

    def cancel(self) -> None:
        if not self._done:
            self._timer.stop()
            self._release()

    def _release(self) -> None:
        self._done = True
        self._timer.deleteLater()


class QtScheduler:
    """
    Scheduler that runs callbacks on the Qt event loop.

    Replay ticks and staleness polls then execute on the GUI thread, next to
    the widgets that read the engine. Must be created on the GUI thread.
    """

    def __init__(self, parent: QObject | None = None):
        self._parent = parent

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> _QtCall:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(round(delay_s * 1000))))
        call = _QtCall(timer, callback)
        timer.start()
        return call
