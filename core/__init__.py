"""
Session handling for the payroll portal client.
"""

from .idle_monitor import IdleSessionMonitor, MonitorState  # noqa: F401
from .route_guard import AccessDecision, check_access, resolve_route  # noqa: F401
