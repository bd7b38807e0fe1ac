from __future__ import annotations

from PySide6.QtCore import QTimer

from conftest import pump_events
from core.task_scheduler import QtTaskScheduler, ScheduledTask


def spin(seconds: float) -> None:
    pump_events(lambda: False, timeout_s=seconds)


def test_one_shot_task_runs_once_and_releases():
    calls, released = [], []
    task = ScheduledTask(lambda: calls.append(task.active), release=lambda: released.append(True))

    task.run()
    task.run()

    assert calls == [False]
    assert released == [True]
    assert not task.active


def test_cancel_is_idempotent_and_prevents_run():
    calls, released = [], []
    task = ScheduledTask(lambda: calls.append(True), release=lambda: released.append(True))

    task.cancel()
    task.cancel()
    task.run()

    assert calls == []
    assert released == [True]


def test_repeating_task_runs_until_cancelled():
    calls = []
    task = ScheduledTask(lambda: calls.append(True), repeat=True)

    task.run()
    task.run()
    task.cancel()
    task.run()

    assert len(calls) == 2


def test_qt_scheduler_returns_armed_tokens():
    scheduler = QtTaskScheduler()

    later = scheduler.call_later(3600, lambda: None)
    every = scheduler.call_every(1, lambda: None)

    assert later.active and not later.repeat
    assert every.active and every.repeat
    later.cancel()
    every.cancel()
    assert not later.active
    assert not every.active
    assert scheduler.now() > 0


def test_restart_only_rearms_pending_tasks():
    restarts = []
    task = ScheduledTask(lambda: None, restart=lambda: restarts.append(True))

    assert task.restart()
    task.run()
    assert not task.restart()
    assert restarts == [True]

    assert not ScheduledTask(lambda: None).restart()


def test_qt_one_shot_fires_once_and_frees_its_timer():
    scheduler = QtTaskScheduler()
    calls = []
    task = scheduler.call_later(0.02, lambda: calls.append(task.active))
    assert len(scheduler.findChildren(QTimer)) == 1

    assert pump_events(lambda: bool(calls), timeout_s=2)
    spin(0.1)

    assert calls == [False]
    assert pump_events(lambda: not scheduler.findChildren(QTimer), timeout_s=2)


def test_qt_repeating_task_stops_when_cancelled():
    scheduler = QtTaskScheduler()
    calls = []
    task = scheduler.call_every(0.01, lambda: calls.append(True))

    assert pump_events(lambda: len(calls) >= 3, timeout_s=2)
    task.cancel()
    seen = len(calls)
    spin(0.1)

    assert len(calls) == seen
    assert pump_events(lambda: not scheduler.findChildren(QTimer), timeout_s=2)


def test_qt_cancelled_task_never_fires():
    scheduler = QtTaskScheduler()
    calls = []
    scheduler.call_later(0.02, lambda: calls.append(True)).cancel()

    spin(0.15)

    assert calls == []


def test_qt_restart_pushes_back_the_same_timer():
    scheduler = QtTaskScheduler()
    fired_at = []
    task = scheduler.call_later(0.3, lambda: fired_at.append(scheduler.now()))

    spin(0.15)
    restarted_at = scheduler.now()
    assert task.restart()

    assert pump_events(lambda: bool(fired_at), timeout_s=2)
    assert fired_at[0] - restarted_at >= 0.28
    assert len(fired_at) == 1
