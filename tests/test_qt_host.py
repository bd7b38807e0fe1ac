from __future__ import annotations

import pytest
from PySide6.QtCore import QEvent, QPointF, Qt, QTimer
from PySide6.QtGui import QKeyEvent, QMouseEvent
from PySide6.QtWidgets import QApplication, QLineEdit, QWidget

from conftest import pump_events
from core.activity_source import ActivityKind, QtActivitySource
from core.idle_monitor import IdleSessionMonitor, MonitorState
from core.settings import SessionSettings
from core.task_scheduler import QtTaskScheduler


def mouse_event(kind: QEvent.Type, button: Qt.MouseButton = Qt.MouseButton.LeftButton) -> QMouseEvent:
    return QMouseEvent(
        kind,
        QPointF(4, 4),
        QPointF(4, 4),
        button,
        button,
        Qt.KeyboardModifier.NoModifier,
    )


def key_event(key: Qt.Key, text: str) -> QKeyEvent:
    return QKeyEvent(QEvent.Type.KeyPress, key, Qt.KeyboardModifier.NoModifier, text)


@pytest.fixture
def target():
    widget = QWidget()
    widget.resize(40, 40)
    widget.show()
    yield widget
    widget.close()


@pytest.fixture
def qt_scheduler():
    return QtTaskScheduler()


@pytest.fixture
def host_monitor(qapp, auth, navigator, qt_scheduler):
    source = QtActivitySource(qapp)
    monitor = IdleSessionMonitor(
        auth_provider=auth,
        activity_source=source,
        navigator=navigator,
        scheduler=qt_scheduler,
        settings=SessionSettings(idle_timeout_seconds=2, warning_seconds=1, countdown_interval_ms=100),
    )
    yield monitor
    monitor.stop()
    assert not source.attached


def test_input_event_reaches_subscriber_and_widget(qapp):
    source = QtActivitySource(qapp)
    seen = []
    source.subscribe(seen.append)
    editor = QLineEdit()
    editor.show()

    QApplication.sendEvent(editor, key_event(Qt.Key.Key_A, "a"))
    source.unsubscribe(seen.append)
    QApplication.sendEvent(editor, key_event(Qt.Key.Key_B, "b"))

    assert ActivityKind.KEY_DOWN in seen
    assert len([kind for kind in seen if kind is ActivityKind.KEY_DOWN]) == 1
    assert editor.text() == "ab"
    assert not source.attached
    editor.close()


def test_mouse_press_pushes_deadline_back(host_monitor, session, target):
    host_monitor.start(session)
    first_deadline = host_monitor.deadline

    pump_events(lambda: False, timeout_s=0.4)
    QApplication.sendEvent(target, mouse_event(QEvent.Type.MouseButtonPress))

    assert host_monitor.state is MonitorState.ACTIVE
    assert host_monitor.deadline >= first_deadline + 0.35


def test_pointer_moves_reuse_armed_timers(host_monitor, session, target, qt_scheduler):
    host_monitor.start(session)

    for _ in range(20):
        QApplication.sendEvent(target, mouse_event(QEvent.Type.MouseMove, Qt.MouseButton.NoButton))

    assert len(qt_scheduler.findChildren(QTimer)) == 2


def test_idle_session_expires_once_on_real_timers(host_monitor, session, auth, navigator, qt_scheduler):
    warnings = []
    expired_at = []
    host_monitor.warningStarted.connect(warnings.append)
    host_monitor.sessionExpired.connect(lambda: expired_at.append(qt_scheduler.now()))

    host_monitor.start(session)

    assert pump_events(lambda: host_monitor.warning_active, timeout_s=5)
    assert len(warnings) == 1
    assert 1 <= warnings[0] <= 2
    assert pump_events(lambda: host_monitor.state is MonitorState.EXPIRED, timeout_s=5)
    pump_events(lambda: False, timeout_s=0.3)

    assert auth.logout_calls == 1
    assert navigator.login_calls == 1
    assert len(expired_at) == 1
    assert expired_at[0] >= host_monitor.deadline - 0.02
    assert pump_events(lambda: not qt_scheduler.findChildren(QTimer), timeout_s=2)
