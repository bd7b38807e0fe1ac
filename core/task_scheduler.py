"""
Scheduled callbacks with cancellation tokens, backed by the Qt event loop.
"""

from __future__ import annotations

import time
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QObject, Qt, QTimer


class ScheduledTask:
    """
    Cancellation token for one scheduled callback.

    A one-shot task becomes inactive just before its callback runs, so the
    callback may freely schedule replacements. A pending task can be pushed
    back with ``restart`` instead of being cancelled and scheduled again.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        *,
        repeat: bool = False,
        release: Optional[Callable[[], None]] = None,
        restart: Optional[Callable[[], None]] = None,
    ) -> None:
        self._callback = callback
        self._repeat = repeat
        self._release = release
        self._restart = restart
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def repeat(self) -> bool:
        return self._repeat

    def cancel(self) -> None:
        """Disarm the task. Safe to call any number of times."""
        if not self._active:
            return
        self._active = False
        self._release_resources()

    def restart(self) -> bool:
        """
        Re-arm a pending task so its original delay counts from now.

        Returns False when the task already ran, was cancelled, or its
        scheduler cannot restart it; the caller then schedules a new task.
        """
        if not self._active or self._restart is None:
            return False
        self._restart()
        return True

    def run(self) -> None:
        if not self._active:
            return
        if not self._repeat:
            self._active = False
            self._release_resources()
        self._callback()

    def _release_resources(self) -> None:
        self._restart = None
        release, self._release = self._release, None
        if release is not None:
            release()


class TaskScheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ScheduledTask: ...

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> ScheduledTask: ...


class QtTaskScheduler(QObject):
    """Schedules tasks as QTimer instances owned by this object."""

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ScheduledTask:
        return self._schedule(delay_s, callback, repeat=False)

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> ScheduledTask:
        return self._schedule(interval_s, callback, repeat=True)

    def _schedule(self, seconds: float, callback: Callable[[], None], *, repeat: bool) -> ScheduledTask:
        timer = QTimer(self)
        # Coarse timers may fire up to 5% early, which would cut sessions short.
        timer.setTimerType(Qt.TimerType.PreciseTimer)
        timer.setSingleShot(not repeat)
        timer.setInterval(max(0, int(round(seconds * 1000))))

        def release() -> None:
            timer.stop()
            timer.deleteLater()

        task = ScheduledTask(callback, repeat=repeat, release=release, restart=timer.start)
        timer.timeout.connect(task.run)  # type: ignore[arg-type]
        timer.start()
        return task
