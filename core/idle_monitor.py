"""
Idle session monitoring with a grace-period warning before forced logout.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QObject, Signal

from core.activity_source import ActivityKind, ActivityListenerError
from core.auth_provider import AuthProvider
from core.settings import SessionSettings
from core.task_scheduler import ScheduledTask, TaskScheduler
from payroll_portal.payroll_portal import logger as app_logger
from shared.session import Session


class MonitorState(Enum):
    STOPPED = "Stopped"
    ACTIVE = "Active"
    WARNING = "Warning"
    EXPIRED = "Expired"


class MonitorExpiredError(RuntimeError):
    """Raised when an expired monitor is asked to start again."""


class ActivitySource(Protocol):
    def subscribe(self, callback) -> None: ...

    def unsubscribe(self, callback) -> None: ...


class Navigator(Protocol):
    def show_login(self) -> None: ...


class IdleSessionMonitor(QObject):
    """
    Logs the session out after ``idle_timeout_seconds`` without activity.

    One deadline task is armed per reset; activity pushes the pending
    deadline and warning tasks back instead of replacing them. The warning
    task fires ``warning_seconds`` before that deadline and starts a
    countdown that is read off the same deadline on every tick, so both
    paths agree on when the session ends whatever the tick interval.
    Activity while the warning is showing does not dismiss it; only
    ``extend_session`` does. Expiry is terminal for the monitor.
    """

    stateChanged = Signal(object)
    warningStarted = Signal(int)
    countdownChanged = Signal(int)
    warningCleared = Signal()
    sessionExpired = Signal()

    def __init__(
        self,
        *,
        auth_provider: AuthProvider,
        activity_source: ActivitySource,
        navigator: Navigator,
        scheduler: TaskScheduler,
        settings: Optional[SessionSettings] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._auth = auth_provider
        self._activity_source = activity_source
        self._navigator = navigator
        self._scheduler = scheduler
        self._settings = settings or SessionSettings()
        self._logger = app_logger.get_logger()

        self._state = MonitorState.STOPPED
        self._session: Optional[Session] = None
        self._listening = False
        self._logout_issued = False
        self._deadline: Optional[float] = None
        self._remaining = 0
        self._deadline_task: Optional[ScheduledTask] = None
        self._warning_task: Optional[ScheduledTask] = None
        self._countdown_task: Optional[ScheduledTask] = None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def warning_active(self) -> bool:
        return self._state is MonitorState.WARNING

    @property
    def remaining_seconds(self) -> int:
        """Seconds until forced logout while the warning is showing, else 0."""
        return self._remaining if self.warning_active else 0

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def start(self, session: Session) -> None:
        """Begin observing activity for ``session``; calling again resets the clock."""
        if self._state is MonitorState.EXPIRED:
            raise MonitorExpiredError("Monitor already expired; create a new one for the next session.")
        self._session = session
        if not self._listening:
            try:
                self._activity_source.subscribe(self.record_activity)
            except ActivityListenerError:
                self._cancel_tasks()
                self._set_state(MonitorState.STOPPED)
                self._logger.error(
                    "Cannot observe user activity; session {} is not timeout-protected.",
                    session.username,
                )
                raise
            self._listening = True
        self._logger.info(
            "Idle monitor started for {} (timeout={}s, warning={}s)",
            session.username,
            self._settings.idle_timeout_seconds,
            self._settings.warning_seconds,
        )
        was_warning = self.warning_active
        self._arm()
        if was_warning:
            self.warningCleared.emit()

    def record_activity(self, kind: Optional[ActivityKind] = None) -> None:
        if self._state is MonitorState.ACTIVE:
            self._arm()
        elif self._state is MonitorState.WARNING:
            self._logger.debug("Ignoring {} while idle warning is showing.", kind.value if kind else "activity")

    def extend_session(self) -> None:
        """User-initiated extension from the warning UI."""
        if self._state not in (MonitorState.ACTIVE, MonitorState.WARNING):
            self._logger.debug("Extend ignored; monitor is {}.", self._state.value)
            return
        was_warning = self.warning_active
        self._arm()
        if was_warning:
            self._logger.info("Session extended by user {}", self._session.username if self._session else "?")
            self.warningCleared.emit()

    def stop(self) -> None:
        """Cancel all tasks and detach from the activity source. Idempotent."""
        self._cancel_tasks()
        self._detach()
        if self._state is MonitorState.WARNING:
            self.warningCleared.emit()
        if self._state in (MonitorState.ACTIVE, MonitorState.WARNING):
            self._set_state(MonitorState.STOPPED)
            self._logger.debug("Idle monitor stopped.")

    def _arm(self) -> None:
        if self._countdown_task is not None:
            self._countdown_task.cancel()
            self._countdown_task = None
        idle_timeout = self._settings.idle_timeout_seconds
        self._deadline = self._scheduler.now() + idle_timeout
        self._remaining = 0
        self._deadline_task = self._rearm(self._deadline_task, idle_timeout, self._expire)
        self._warning_task = self._rearm(
            self._warning_task, self._settings.warning_after_seconds, self._enter_warning
        )
        self._set_state(MonitorState.ACTIVE)

    def _rearm(self, task: Optional[ScheduledTask], delay_s: float, callback: Callable[[], None]) -> ScheduledTask:
        if task is not None:
            if task.restart():
                return task
            task.cancel()
        return self._scheduler.call_later(delay_s, callback)

    def _enter_warning(self) -> None:
        if self._state is not MonitorState.ACTIVE:
            return
        self._warning_task = None
        self._remaining = self._seconds_left()
        self._set_state(MonitorState.WARNING)
        self._logger.info("Session idle; forced logout in {} seconds.", self._remaining)
        self.warningStarted.emit(self._remaining)
        self._countdown_task = self._scheduler.call_every(
            self._settings.countdown_interval_ms / 1000.0, self._tick
        )

    def _tick(self) -> None:
        if self._state is not MonitorState.WARNING:
            return
        remaining = self._seconds_left()
        if remaining != self._remaining:
            self._remaining = remaining
            self.countdownChanged.emit(remaining)
        if remaining == 0:
            self._expire()

    def _expire(self) -> None:
        if self._state is MonitorState.EXPIRED or self._logout_issued:
            return
        self._logout_issued = True
        self._cancel_tasks()
        self._detach()
        self._remaining = 0
        self._set_state(MonitorState.EXPIRED)
        username = self._session.username if self._session else "?"
        self._logger.warning("Idle timeout reached; logging out {}.", username)
        try:
            self._auth.logout()
        except Exception:
            self._logger.exception("Logout after idle timeout failed; continuing to login screen.")
        self._navigator.show_login()
        self.sessionExpired.emit()

    def _seconds_left(self) -> int:
        if self._deadline is None:
            return 0
        # Round up so the countdown reads zero only once the deadline has passed.
        return max(0, math.ceil(self._deadline - self._scheduler.now()))

    def _cancel_tasks(self) -> None:
        for task in (self._deadline_task, self._warning_task, self._countdown_task):
            if task is not None:
                task.cancel()
        self._deadline_task = None
        self._warning_task = None
        self._countdown_task = None

    def _detach(self) -> None:
        if not self._listening:
            return
        self._activity_source.unsubscribe(self.record_activity)
        self._listening = False

    def _set_state(self, state: MonitorState) -> None:
        if state is self._state:
            return
        self._state = state
        self.stateChanged.emit(state)
