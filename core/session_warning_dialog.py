"""
Dialog warning the user that the idle session is about to end.
"""

from __future__ import annotations

from PySide6.QtCore import QPoint, Qt, Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QApplication,
    QDialog,
    QGraphicsDropShadowEffect,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

WARNING_TITLE = "Sesi Akan Berakhir"
EXTEND_LABEL = "Perpanjang Sesi"


def format_countdown(seconds: int) -> str:
    """Render seconds as ``M:SS``."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def build_warning_message(seconds: int) -> str:
    return (
        f"Anda akan otomatis logout dalam <b>{format_countdown(seconds)}</b> menit "
        "karena tidak ada aktivitas."
    )


class SessionWarningDialog(QDialog):
    extendRequested = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        flags = (
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.Dialog
            | Qt.WindowType.WindowStaysOnTopHint
        )
        self.setWindowFlags(flags)
        self.setWindowModality(Qt.WindowModality.ApplicationModal)
        shadow = QGraphicsDropShadowEffect(self)
        shadow.setBlurRadius(24)
        shadow.setColor(QColor(0, 0, 0, 160))
        shadow.setOffset(0, 12)
        self.setGraphicsEffect(shadow)

        self._seconds = 0

        self._title_label = QLabel(WARNING_TITLE)
        self._title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._title_label.setStyleSheet("font-weight: bold; font-size: 18px;")
        self._message_label = QLabel()
        self._message_label.setWordWrap(True)
        self._message_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._message_label.setTextFormat(Qt.TextFormat.RichText)

        self._extend_btn = QPushButton(EXTEND_LABEL)
        self._extend_btn.setMinimumHeight(36)
        self._extend_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self._extend_btn.setStyleSheet(
            """
            QPushButton {
                padding: 0 14px;
                border-radius: 8px;
                background-color: #2563eb;
                color: white;
                font-weight: 600;
            }
            QPushButton:hover {
                background-color: #1d4ed8;
            }
            QPushButton:pressed {
                background-color: #1e40af;
            }
            """
        )

        layout = QVBoxLayout(self)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(12)
        layout.addWidget(self._title_label)
        layout.addWidget(self._message_label)
        layout.addSpacing(8)
        layout.addWidget(self._extend_btn)
        self.setMinimumWidth(380)

        self.setStyleSheet(
            """
            QDialog {
                background-color: white;
                border-radius: 12px;
                border: 1px solid rgba(0, 0, 0, 0.08);
            }
            QLabel {
                color: #1f2937;
            }
            """
        )

        self._extend_btn.clicked.connect(self._emit_extend)  # type: ignore[arg-type]

    @property
    def seconds_remaining(self) -> int:
        return self._seconds

    def show_countdown(self, seconds: int) -> None:
        """Display the dialog with the given remaining time."""
        self.update_countdown(seconds)
        self.adjustSize()
        self._position_center()
        self.show()
        self.raise_()

    def update_countdown(self, seconds: int) -> None:
        self._seconds = max(0, int(seconds))
        self._message_label.setText(build_warning_message(self._seconds))

    def dismiss(self) -> None:
        self._seconds = 0
        self.hide()

    def _position_center(self) -> None:
        parent = self.parentWidget()
        if parent is not None and parent.isVisible():
            geometry = parent.frameGeometry()
        else:
            screen = QApplication.primaryScreen()
            if screen is None:
                return
            geometry = screen.availableGeometry()
        x = geometry.center().x() - self.width() // 2
        y = geometry.center().y() - self.height() // 2
        self.move(QPoint(x, y))

    def _emit_extend(self) -> None:
        self.extendRequested.emit()
