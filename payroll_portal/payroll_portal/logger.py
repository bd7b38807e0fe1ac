"""
Loguru sinks for the payroll portal client.

The log file location comes from ``core.settings.read_log_path`` so it can
be moved with the same environment/QSettings configuration as the session
settings. ``main`` configures the sinks before the coordinator is built;
any module asking for the logger earlier gets the same resolution.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"

_log_path: Optional[Path] = None


def configure(log_path: Optional[Path] = None, *, console_level: str = "INFO") -> Path:
    """
    Install a console sink and a rotating file sink at ``log_path``.

    Only the first call per process takes effect; the resolved path is
    returned either way.
    """
    global _log_path
    if _log_path is not None:
        return _log_path

    if log_path is None:
        from core.settings import read_log_path

        log_path = read_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    # Windowed builds run without a console.
    if sys.stderr is not None:
        _logger.add(sys.stderr, level=console_level, format=LOG_FORMAT, enqueue=True)
    _logger.add(
        log_path,
        level="DEBUG",
        format=LOG_FORMAT,
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _log_path = log_path
    _logger.debug("Logging to {}", log_path)
    return log_path


def current_log_path() -> Optional[Path]:
    return _log_path


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger
