"""
Role-based access decisions for the portal's authenticated area.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from shared.session import Session

LOGIN_PATH = "/login"
HOME_PATH = "/"


class AccessDecision(Enum):
    GRANTED = "Granted"
    LOGIN_REQUIRED = "LoginRequired"
    FORBIDDEN = "Forbidden"


@dataclass(frozen=True)
class Route:
    path: str
    title: str
    allowed_roles: Tuple[str, ...] = ()


PORTAL_ROUTES: Dict[str, Route] = {
    route.path: route
    for route in (
        Route("/", "Dashboard"),
        Route("/jabatan", "Jabatan", ("admin", "hr")),
        Route("/karyawan", "Karyawan", ("admin", "hr")),
        Route("/absensi", "Absensi", ("admin", "hr")),
        Route("/lembur", "Lembur", ("admin", "hr")),
        Route("/gaji", "Gaji", ("admin", "finance")),
        Route("/laporan", "Laporan", ("admin", "finance")),
        Route("/users", "Users", ("admin",)),
        Route("/slip-gaji", "Slip Gaji"),
    )
}


def normalize_path(path: str) -> str:
    cleaned = "/" + (path or "").strip().strip("/")
    return cleaned.lower()


def is_login_path(path: str) -> bool:
    return normalize_path(path) == LOGIN_PATH


def resolve_route(path: str) -> Route:
    """Return the route for ``path``; unknown paths land on the dashboard."""
    return PORTAL_ROUTES.get(normalize_path(path), PORTAL_ROUTES[HOME_PATH])


def check_access(session: Optional[Session], route: Route) -> AccessDecision:
    if session is None:
        return AccessDecision.LOGIN_REQUIRED
    if not session.has_role(route.allowed_roles):
        return AccessDecision.FORBIDDEN
    return AccessDecision.GRANTED
