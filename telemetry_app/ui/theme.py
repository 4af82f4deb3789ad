from __future__ import annotations

# Dark control-room palette (Tailwind zinc / sky).
APP_QSS = """
QMainWindow, QDialog {
    background: #09090b; /* zinc-950 */
    color: #e4e4e7;      /* zinc-200 */
    font-family: Segoe UI, Arial;
    font-size: 12px;
}

QLabel {
    color: #e4e4e7;
}

QFrame#Card {
    background: #18181b; /* zinc-900 */
    border: 1px solid #27272a; /* zinc-800 */
    border-radius: 10px;
}

QPushButton {
    background: #0369a1; /* sky-700 */
    border: 0px;
    padding: 7px 14px;
    border-radius: 8px;
    color: #f8fafc;
    font-weight: 600;
}
QPushButton:hover {
    background: #0284c7; /* sky-600 */
}
QPushButton:disabled {
    background: #3f3f46; /* zinc-700 */
    color: #a1a1aa;
}

QComboBox {
    background: #18181b;
    border: 1px solid #3f3f46;
    border-radius: 6px;
    padding: 5px 10px;
    color: #e4e4e7;
}

QSlider::groove:horizontal {
    height: 6px;
    background: #27272a;
    border-radius: 3px;
}
QSlider::sub-page:horizontal {
    background: #38bdf8; /* sky-400 */
    border-radius: 3px;
}
QSlider::handle:horizontal {
    width: 14px;
    margin: -5px 0;
    background: #f4f4f5;
    border-radius: 7px;
}

QTableWidget {
    background: #0c0c0f;
    border: 1px solid #27272a;
    gridline-color: #27272a;
    color: #e4e4e7;
}
QHeaderView::section {
    background: #18181b;
    color: #a1a1aa;
    border: 0px;
    padding: 5px;
}

QStatusBar {
    color: #a1a1aa;
}
QSplitter::handle {
    background: #27272a;
}
"""

COLOR_OK = "#22c55e"          # green-500
COLOR_WARN = "#f59e0b"        # amber-500
COLOR_CRIT = "#ef4444"        # red-500
COLOR_TEXT_MUTED = "#a1a1aa"  # zinc-400
COLOR_ACCENT = "#38bdf8"      # sky-400

# snapshot_view levels -> colors
LEVEL_COLORS = {
    "OK": COLOR_OK,
    "WARNING": COLOR_WARN,
    "CRITICAL": COLOR_CRIT,
    "MUTED": COLOR_TEXT_MUTED,
}


def level_color(level: str) -> str:
    return LEVEL_COLORS.get(level, COLOR_TEXT_MUTED)
