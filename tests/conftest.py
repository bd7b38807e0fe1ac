from __future__ import annotations

import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional

# Must be set before the logger module and Qt are imported.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("PAYROLL_PORTAL_LOG_DIR", tempfile.mkdtemp(prefix="payroll-portal-logs-"))

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import pytest  # noqa: E402
from PySide6.QtCore import QCoreApplication, QSettings  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from core.activity_source import ActivityKind, ActivityListenerError  # noqa: E402
from core.task_scheduler import ScheduledTask  # noqa: E402
from shared.session import Session  # noqa: E402
from shared.session_schema import load_and_validate_session  # noqa: E402


class ManualScheduler:
    """Deterministic TaskScheduler driven by an explicit clock."""

    def __init__(self, *, newest_first_on_ties: bool = False) -> None:
        self._now = 0.0
        self._seq = 0
        self._entries: List[list] = []
        self._newest_first = newest_first_on_ties
        self.created = 0

    def now(self) -> float:
        return self._now

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ScheduledTask:
        return self._add(delay_s, None, callback)

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> ScheduledTask:
        return self._add(interval_s, interval_s, callback)

    def armed(self) -> List[ScheduledTask]:
        return [entry[3] for entry in self._entries if entry[3].active]

    def advance(self, seconds: float) -> None:
        self.advance_to(self._now + seconds)

    def advance_to(self, target: float) -> None:
        while True:
            self._entries = [entry for entry in self._entries if entry[3].active]
            due = [entry for entry in self._entries if entry[0] <= target]
            if not due:
                break
            order = -1 if self._newest_first else 1
            entry = min(due, key=lambda e: (e[0], order * e[1]))
            self._now = entry[0]
            if entry[2] is not None:
                entry[0] += entry[2]
            entry[3].run()
        self._now = target

    def _add(self, delay: float, interval: Optional[float], callback: Callable[[], None]) -> ScheduledTask:
        entry: list = [self._now + delay, self._next_seq(), interval, None]

        def restart() -> None:
            entry[0] = self._now + delay
            entry[1] = self._next_seq()

        entry[3] = ScheduledTask(callback, repeat=interval is not None, restart=restart)
        self._entries.append(entry)
        self.created += 1
        return entry[3]

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq


class FakeActivitySource:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.subscribers: list = []
        self.subscribe_attempts = 0

    def subscribe(self, callback) -> None:
        self.subscribe_attempts += 1
        if self.fail:
            raise ActivityListenerError("event subscription unavailable")
        if callback not in self.subscribers:
            self.subscribers.append(callback)

    def unsubscribe(self, callback) -> None:
        if callback in self.subscribers:
            self.subscribers.remove(callback)

    def emit(self, kind: ActivityKind = ActivityKind.POINTER_MOVE) -> None:
        for callback in list(self.subscribers):
            callback(kind)


class FakeAuthProvider:
    def __init__(self, *, error: Optional[Exception] = None) -> None:
        self.error = error
        self.logout_calls = 0
        self.current_session = None

    def logout(self) -> None:
        self.logout_calls += 1
        if self.error is not None:
            raise self.error


class FakeNavigator:
    def __init__(self) -> None:
        self.login_calls = 0

    def show_login(self) -> None:
        self.login_calls += 1


def pump_events(until: Callable[[], bool], timeout_s: float = 5.0) -> bool:
    """Run the Qt event loop until ``until()`` holds or the timeout passes."""
    give_up = time.monotonic() + timeout_s
    while time.monotonic() < give_up:
        QCoreApplication.processEvents()
        if until():
            return True
        time.sleep(0.005)
    return until()


def make_payload(**user_overrides) -> dict:
    user = {
        "id": 7,
        "username": "sekdes",
        "name": "Sekretaris Desa",
        "email": "sekdes@pemdes.desa",
        "role": "admin",
        "is_active": True,
    }
    user.update(user_overrides)
    return {"token": "jwt-token", "user": user}


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def activity() -> FakeActivitySource:
    return FakeActivitySource()


@pytest.fixture
def auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def navigator() -> FakeNavigator:
    return FakeNavigator()


@pytest.fixture
def session() -> Session:
    return Session(load_and_validate_session(make_payload()))


@pytest.fixture
def ini_settings(tmp_path) -> QSettings:
    return QSettings(str(tmp_path / "portal.ini"), QSettings.Format.IniFormat)
