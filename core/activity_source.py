"""
User activity observation through an application-wide Qt event filter.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional

from PySide6.QtCore import QCoreApplication, QEvent, QObject


class ActivityKind(Enum):
    POINTER_DOWN = "pointer-down"
    POINTER_MOVE = "pointer-move"
    KEY_PRESS = "key-press"
    KEY_DOWN = "key-down"
    SCROLL = "scroll"
    TOUCH_START = "touch-start"
    CLICK = "click"


class ActivityListenerError(RuntimeError):
    """Raised when activity listeners cannot be attached to the host."""


ActivityCallback = Callable[[ActivityKind], None]

EVENT_KINDS = {
    QEvent.Type.MouseButtonPress: ActivityKind.POINTER_DOWN,
    QEvent.Type.MouseMove: ActivityKind.POINTER_MOVE,
    QEvent.Type.HoverMove: ActivityKind.POINTER_MOVE,
    QEvent.Type.KeyPress: ActivityKind.KEY_DOWN,
    QEvent.Type.InputMethod: ActivityKind.KEY_PRESS,
    QEvent.Type.Wheel: ActivityKind.SCROLL,
    QEvent.Type.Scroll: ActivityKind.SCROLL,
    QEvent.Type.TouchBegin: ActivityKind.TOUCH_START,
    QEvent.Type.MouseButtonRelease: ActivityKind.CLICK,
}


def classify_event(event: QEvent) -> Optional[ActivityKind]:
    """Map a Qt event to the activity kind it counts as, if any."""
    return EVENT_KINDS.get(event.type())


class QtActivitySource(QObject):
    """
    Forwards qualifying input events to subscribers.

    The filter is installed on the application instance when the first
    subscriber arrives and removed when the last one leaves. Events are never
    consumed.
    """

    def __init__(self, app: QCoreApplication | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._app = app
        self._installed_on: QCoreApplication | None = None
        self._subscribers: List[ActivityCallback] = []

    @property
    def attached(self) -> bool:
        return self._installed_on is not None

    def subscribe(self, callback: ActivityCallback) -> None:
        if callback in self._subscribers:
            return
        if self._installed_on is None:
            app = self._app or QCoreApplication.instance()
            if app is None:
                raise ActivityListenerError("No Qt application instance to observe input events on.")
            try:
                app.installEventFilter(self)
            except RuntimeError as exc:
                raise ActivityListenerError(f"Unable to install activity filter: {exc}") from exc
            self._installed_on = app
        self._subscribers.append(callback)

    def unsubscribe(self, callback: ActivityCallback) -> None:
        if callback not in self._subscribers:
            return
        self._subscribers.remove(callback)
        if not self._subscribers and self._installed_on is not None:
            self._installed_on.removeEventFilter(self)
            self._installed_on = None

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        kind = classify_event(event)
        if kind is not None:
            for callback in list(self._subscribers):
                callback(kind)
        return False
