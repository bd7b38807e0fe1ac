"""
Application coordinator tying the signed-in session to its idle monitor.
"""

from __future__ import annotations

from typing import Any, Optional

from PySide6.QtCore import QObject
from PySide6.QtWidgets import QApplication

from core.activity_source import ActivityListenerError, QtActivitySource
from core.auth_provider import LogoutError, SessionAuthProvider
from core.idle_monitor import ActivitySource, IdleSessionMonitor, MonitorState
from core.portal_window import PortalWindow
from core.route_guard import AccessDecision, HOME_PATH, check_access, is_login_path, resolve_route
from core.session_warning_dialog import SessionWarningDialog
from core.settings import SessionSettings, SessionSettingsManager
from core.task_scheduler import QtTaskScheduler, TaskScheduler
from payroll_portal.payroll_portal import logger as app_logger
from shared.session import Session

APP_NAME = "Payroll Portal"
APP_VERSION = "1.0.0"


class PortalCoordinator(QObject):
    """
    Owns the portal window, the warning dialog and one idle monitor per
    signed-in session. The monitor is created when the session enters the
    authenticated area and discarded when it leaves it or expires.
    """

    def __init__(
        self,
        *,
        auth_provider: Optional[SessionAuthProvider] = None,
        settings_manager: Optional[SessionSettingsManager] = None,
        scheduler: Optional[TaskScheduler] = None,
        activity_source: Optional[ActivitySource] = None,
    ) -> None:
        super().__init__()
        self._logger = app_logger.get_logger()
        self.auth_provider = auth_provider or SessionAuthProvider()
        self.settings_manager = settings_manager or SessionSettingsManager()
        self._settings: SessionSettings = self.settings_manager.read_settings()
        self._scheduler = scheduler or QtTaskScheduler(self)
        self._activity_source = activity_source or QtActivitySource(parent=self)
        self._manual_shutdown_requested = False

        self._window = PortalWindow()
        self._dialog = SessionWarningDialog(self._window)
        self._monitor: Optional[IdleSessionMonitor] = None
        # Session admitted without idle protection when FailClosed is off.
        self._unprotected_session: Optional[Session] = None

        self._window.routeRequested.connect(self.navigate)
        self._window.signOutRequested.connect(self.sign_out)
        self._dialog.extendRequested.connect(self._on_extend_requested)

    @property
    def window(self) -> PortalWindow:
        return self._window

    @property
    def warning_dialog(self) -> SessionWarningDialog:
        return self._dialog

    @property
    def monitor(self) -> Optional[IdleSessionMonitor]:
        return self._monitor

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def manual_shutdown_requested(self) -> bool:
        return self._manual_shutdown_requested

    def start(self) -> None:
        self._logger.info("Starting {} v{}", APP_NAME, APP_VERSION)
        session = self.auth_provider.restore()
        if session is None:
            self._window.show_login()
        else:
            self.navigate(HOME_PATH)
        self._window.show()

    def sign_in(self, payload: Any) -> Session:
        session = self.auth_provider.login(payload)
        self.navigate(HOME_PATH)
        return session

    def navigate(self, path: str) -> None:
        if is_login_path(path):
            self.sign_out()
            return

        session = self.auth_provider.current_session
        route = resolve_route(path)
        decision = check_access(session, route)

        if decision is AccessDecision.LOGIN_REQUIRED:
            self._logger.debug("Route {} requires login.", route.path)
            self._discard_monitor()
            self._window.show_login()
            return

        if not self._ensure_monitor(session):
            return

        if decision is AccessDecision.FORBIDDEN:
            self._logger.info("Access to {} denied for role {}", route.path, session.role)
            self._window.show_forbidden()
            return

        self._window.show_route(route, session)

    def sign_out(self) -> None:
        self._discard_monitor()
        try:
            self.auth_provider.logout()
        except LogoutError as exc:
            self._logger.error("Logout did not complete cleanly: {}", exc)
        self._window.show_login()

    def shutdown(self) -> None:
        if self._manual_shutdown_requested:
            return
        self._logger.info("Shutting down application on user request.")
        self._manual_shutdown_requested = True
        self._discard_monitor()
        self._window.close()
        app = QApplication.instance()
        if app is not None:
            app.quit()

    def _ensure_monitor(self, session: Session) -> bool:
        monitor = self._monitor
        if (
            monitor is not None
            and monitor.session is session
            and monitor.state in (MonitorState.ACTIVE, MonitorState.WARNING)
        ):
            return True
        if monitor is None and self._unprotected_session is session:
            return True

        self._discard_monitor()
        monitor = IdleSessionMonitor(
            auth_provider=self.auth_provider,
            activity_source=self._activity_source,
            navigator=self._window,
            scheduler=self._scheduler,
            settings=self._settings,
            parent=self,
        )
        monitor.warningStarted.connect(self._dialog.show_countdown)
        monitor.countdownChanged.connect(self._dialog.update_countdown)
        monitor.warningCleared.connect(self._dialog.dismiss)
        monitor.sessionExpired.connect(self._on_session_expired)

        try:
            monitor.start(session)
        except ActivityListenerError:
            monitor.deleteLater()
            if self._settings.fail_closed_without_activity:
                self._logger.error("Refusing portal entry for {}: idle protection unavailable.", session.username)
                self.sign_out()
                return False
            self._logger.warning("Continuing without idle protection for {}.", session.username)
            self._unprotected_session = session
            return True

        self._monitor = monitor
        return True

    def _discard_monitor(self) -> None:
        monitor, self._monitor = self._monitor, None
        self._unprotected_session = None
        self._dialog.dismiss()
        if monitor is None:
            return
        monitor.stop()
        monitor.deleteLater()

    def _on_extend_requested(self) -> None:
        if self._monitor is not None:
            self._monitor.extend_session()

    def _on_session_expired(self) -> None:
        self._logger.info("Session expired after inactivity; showing login.")
        self._discard_monitor()
