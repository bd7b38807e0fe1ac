"""
Main window hosting the login surface and the authenticated portal area.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from core.route_guard import LOGIN_PATH, PORTAL_ROUTES, Route
from shared.session import Session

WINDOW_TITLE = "Sistem Payroll - Pemerintah Desa"


class PortalWindow(QMainWindow):
    routeChanged = Signal(str)
    routeRequested = Signal(str)
    signOutRequested = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(WINDOW_TITLE)
        self._current_path: Optional[str] = None

        self._stack = QStackedWidget(self)
        self._login_page = self._build_login_page()
        self._portal_page = self._build_portal_page()
        self._forbidden_page = self._build_forbidden_page()
        for page in (self._login_page, self._portal_page, self._forbidden_page):
            self._stack.addWidget(page)
        self.setCentralWidget(self._stack)

    @property
    def current_path(self) -> Optional[str]:
        return self._current_path

    def show_login(self) -> None:
        self._stack.setCurrentWidget(self._login_page)
        self._set_path(LOGIN_PATH)

    def show_route(self, route: Route, session: Session) -> None:
        self._page_title.setText(route.title)
        self._user_label.setText(f"{session.display_name} ({session.role})")
        self._select_nav(route.path)
        self._stack.setCurrentWidget(self._portal_page)
        self._set_path(route.path)

    def show_forbidden(self) -> None:
        self._stack.setCurrentWidget(self._forbidden_page)

    def _set_path(self, path: str) -> None:
        if path == self._current_path:
            return
        self._current_path = path
        self.routeChanged.emit(path)

    def _select_nav(self, path: str) -> None:
        for row in range(self._nav.count()):
            item = self._nav.item(row)
            if item.data(Qt.ItemDataRole.UserRole) == path:
                self._nav.blockSignals(True)
                self._nav.setCurrentRow(row)
                self._nav.blockSignals(False)
                return

    def _build_login_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.addStretch()
        title = QLabel("Sistem Payroll")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet("font-weight: bold; font-size: 22px;")
        hint = QLabel("Silakan login untuk melanjutkan.")
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)
        layout.addWidget(hint)
        layout.addStretch()
        return page

    def _build_portal_page(self) -> QWidget:
        page = QWidget()
        layout = QHBoxLayout(page)
        layout.setContentsMargins(0, 0, 0, 0)

        self._nav = QListWidget()
        self._nav.setFixedWidth(200)
        for route in PORTAL_ROUTES.values():
            item = QListWidgetItem(route.title)
            item.setData(Qt.ItemDataRole.UserRole, route.path)
            self._nav.addItem(item)
        self._nav.itemClicked.connect(self._on_nav_clicked)  # type: ignore[arg-type]

        header = QHBoxLayout()
        self._page_title = QLabel()
        self._page_title.setStyleSheet("font-weight: 600; font-size: 20px;")
        self._user_label = QLabel()
        logout_button = QPushButton("Logout")
        logout_button.clicked.connect(self.signOutRequested)  # type: ignore[arg-type]
        header.addWidget(self._page_title)
        header.addStretch()
        header.addWidget(self._user_label)
        header.addWidget(logout_button)

        content = QVBoxLayout()
        content.setContentsMargins(24, 16, 24, 16)
        content.addLayout(header)
        content.addStretch()

        layout.addWidget(self._nav)
        layout.addLayout(content)
        return page

    def _build_forbidden_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.addStretch()
        title = QLabel("Akses Ditolak")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet("font-weight: bold; font-size: 22px;")
        message = QLabel("Anda tidak memiliki izin untuk mengakses halaman ini.")
        message.setAlignment(Qt.AlignmentFlag.AlignCenter)
        back_button = QPushButton("Kembali ke Dashboard")
        back_button.clicked.connect(lambda: self.routeRequested.emit("/"))  # type: ignore[arg-type]
        layout.addWidget(title)
        layout.addWidget(message)
        layout.addWidget(back_button, alignment=Qt.AlignmentFlag.AlignCenter)
        layout.addStretch()
        return page

    def _on_nav_clicked(self, item: QListWidgetItem) -> None:
        self.routeRequested.emit(item.data(Qt.ItemDataRole.UserRole))
