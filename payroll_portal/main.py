"""
Entry point for the payroll portal client.
"""

from __future__ import annotations

import sys
import time
from typing import Iterable, Tuple

from PySide6.QtWidgets import QApplication

from core.app import APP_NAME, PortalCoordinator
from core.settings import APPLICATION_NAME, ORGANIZATION_NAME, read_log_path
from payroll_portal.payroll_portal import logger as app_logger


def _run_application_once(argv: Iterable[str]) -> Tuple[int, bool]:
    """Start the Qt application once and report whether shutdown was intentional."""
    app = QApplication.instance() or QApplication(list(argv))
    app.setOrganizationName(ORGANIZATION_NAME)
    app.setApplicationName(APPLICATION_NAME)
    coordinator = PortalCoordinator()
    app.aboutToQuit.connect(coordinator.shutdown)
    coordinator.start()
    exit_code = app.exec()
    return exit_code, coordinator.manual_shutdown_requested


def main() -> int:
    """Launch the application, restarting it after unexpected exits."""
    log_path = app_logger.configure(read_log_path())
    logger = app_logger.get_logger()
    logger.info("{} logging to {}", APP_NAME, log_path)
    backoff_seconds = 2
    max_backoff = 30

    while True:
        try:
            exit_code, manual = _run_application_once(sys.argv)
        except Exception:  # pragma: no cover - crash guard
            logger.exception("{} crashed; attempting automatic recovery.", APP_NAME)
            exit_code = 1
            manual = False

        if manual or exit_code == 0:
            return exit_code

        logger.warning(
            "{} exited unexpectedly (code={}). Restarting in {} seconds.",
            APP_NAME,
            exit_code,
            backoff_seconds,
        )
        time.sleep(backoff_seconds)
        backoff_seconds = min(backoff_seconds * 2, max_backoff)


if __name__ == "__main__":
    raise SystemExit(main())
