"""
QSettings-backed configuration for the payroll portal session guard.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from PySide6.QtCore import QSettings

from payroll_portal.payroll_portal import logger as app_logger

ORGANIZATION_NAME = "Pemerintah Desa"
APPLICATION_NAME = "Payroll Portal"
SETTINGS_PATH_ENV = "PAYROLL_PORTAL_SETTINGS"
LOG_DIR_ENV = "PAYROLL_PORTAL_LOG_DIR"
LOG_FILE_NAME = "portal.log"

DEFAULT_IDLE_TIMEOUT_SECONDS = 60 * 60
DEFAULT_WARNING_SECONDS = 5 * 60
DEFAULT_COUNTDOWN_INTERVAL_MS = 1000

_GROUP = "Session"
_LOG_DIR_KEY = "Logging/Directory"
_MIN_IDLE_TIMEOUT = 60
_MAX_IDLE_TIMEOUT = 24 * 60 * 60
_MIN_WARNING = 10


def open_qsettings() -> QSettings:
    """Return the settings store, preferring an INI file named by the environment."""
    path = os.environ.get(SETTINGS_PATH_ENV)
    if path:
        return QSettings(path, QSettings.Format.IniFormat)
    return QSettings(ORGANIZATION_NAME, APPLICATION_NAME)


def default_log_dir() -> Path:
    return Path.home() / ".local" / "share" / APPLICATION_NAME / "logs"


def read_log_path(qsettings: Optional[QSettings] = None) -> Path:
    """
    Resolve the log file location.

    ``PAYROLL_PORTAL_LOG_DIR`` wins, then ``Logging/Directory`` in the
    settings store, then the per-user data directory. Nothing is logged here
    because the logger is configured from the result.
    """
    env_dir = os.environ.get(LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir) / LOG_FILE_NAME
    store = qsettings or open_qsettings()
    stored = store.value(_LOG_DIR_KEY)
    if isinstance(stored, str) and stored.strip():
        return Path(stored.strip()).expanduser() / LOG_FILE_NAME
    return default_log_dir() / LOG_FILE_NAME


@dataclass(eq=True)
class SessionSettings:
    idle_timeout_seconds: int = DEFAULT_IDLE_TIMEOUT_SECONDS
    warning_seconds: int = DEFAULT_WARNING_SECONDS
    countdown_interval_ms: int = DEFAULT_COUNTDOWN_INTERVAL_MS
    fail_closed_without_activity: bool = True

    def __post_init__(self) -> None:
        if self.idle_timeout_seconds <= 0:
            raise ValueError(f"idle_timeout_seconds must be positive, got {self.idle_timeout_seconds}.")
        if not 0 < self.warning_seconds < self.idle_timeout_seconds:
            raise ValueError(
                f"warning_seconds must be between 1 and {self.idle_timeout_seconds - 1}, "
                f"got {self.warning_seconds}."
            )
        if self.countdown_interval_ms <= 0:
            raise ValueError(f"countdown_interval_ms must be positive, got {self.countdown_interval_ms}.")

    @property
    def warning_after_seconds(self) -> int:
        """Elapsed idle time at which the warning is surfaced."""
        return self.idle_timeout_seconds - self.warning_seconds


class SessionSettingsManager:
    """Loads persisted session settings and clamps invalid data."""

    def __init__(self, *, qsettings: Optional[QSettings] = None) -> None:
        self._qsettings = qsettings
        self._logger = app_logger.get_logger()

    def read_settings(self) -> SessionSettings:
        store = self._qsettings or open_qsettings()
        store.beginGroup(_GROUP)
        try:
            idle_timeout = self._read_idle_timeout(store)
            return SessionSettings(
                idle_timeout_seconds=idle_timeout,
                warning_seconds=self._read_warning(store, idle_timeout),
                fail_closed_without_activity=self._read_bool(store, "FailClosed", True),
            )
        finally:
            store.endGroup()

    def _read_idle_timeout(self, store: QSettings) -> int:
        raw = self._read_int(store, "IdleTimeoutSeconds")
        if raw is None:
            return DEFAULT_IDLE_TIMEOUT_SECONDS
        if raw < _MIN_IDLE_TIMEOUT or raw > _MAX_IDLE_TIMEOUT:
            self._logger.warning(
                "Invalid idle timeout {} found in settings. Clamping to safe bounds.",
                raw,
            )
        return max(_MIN_IDLE_TIMEOUT, min(_MAX_IDLE_TIMEOUT, raw))

    def _read_warning(self, store: QSettings, idle_timeout: int) -> int:
        raw = self._read_int(store, "WarningSeconds")
        upper = idle_timeout - 1
        if raw is None:
            return min(DEFAULT_WARNING_SECONDS, upper)
        if raw < _MIN_WARNING or raw > upper:
            self._logger.warning(
                "Invalid warning lead time {} for idle timeout {}. Clamping to safe bounds.",
                raw,
                idle_timeout,
            )
        return max(_MIN_WARNING, min(upper, raw))

    def _read_bool(self, store: QSettings, name: str, default: bool) -> bool:
        raw = store.value(name)
        if raw is None:
            return default
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().lower() in {"true", "1", "yes"}:
            return True
        if isinstance(raw, str) and raw.strip().lower() in {"false", "0", "no"}:
            return False
        if isinstance(raw, int):
            return bool(raw)
        self._logger.warning("Setting {} has unexpected value {!r}.", name, raw)
        return default

    def _read_int(self, store: QSettings, name: str) -> Optional[int]:
        raw: Any = store.value(name)
        if raw is None:
            return None
        if isinstance(raw, bool):
            self._logger.warning("Setting {} has unexpected type {}.", name, type(raw).__name__)
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            self._logger.warning("Setting {} has unexpected value {!r}.", name, raw)
            return None
