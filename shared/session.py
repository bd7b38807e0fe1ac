"""
Shared representation of an authenticated portal session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .session_schema import format_utc_iso, parse_iso8601_utc


@dataclass(slots=True)
class Session:
    """
    Identity context of a signed-in user, built from a validated payload
    (see ``shared.session_schema.load_and_validate_session``).
    """

    payload: Dict[str, Any]
    token: str = field(init=False, default="")
    user_id: int = field(init=False, default=0)
    username: str = field(init=False, default="")
    name: str = field(init=False, default="")
    email: Optional[str] = field(init=False, default=None)
    role: str = field(init=False, default="admin")
    started_at: datetime = field(init=False)

    def __post_init__(self) -> None:
        user = self.payload["user"]
        self.token = self.payload["token"]
        self.user_id = user["id"]
        self.username = user["username"]
        self.name = user.get("name") or user["username"]
        self.email = user.get("email")
        self.role = user.get("role") or "admin"

        signed_in = self.payload.get("signed_in_at")
        if signed_in:
            self.started_at = parse_iso8601_utc(signed_in)
        else:
            self.started_at = datetime.now(timezone.utc)

    @property
    def display_name(self) -> str:
        return self.name or self.username

    def has_role(self, roles: Iterable[str]) -> bool:
        """Return whether the session role is in ``roles``; empty means any role."""
        allowed = {role.lower() for role in roles}
        if not allowed:
            return True
        return self.role in allowed

    def to_payload(self) -> Dict[str, Any]:
        """Return the persisted shape, stamped with the sign-in time."""
        return {
            "token": self.token,
            "user": {
                "id": self.user_id,
                "username": self.username,
                "name": self.name,
                "email": self.email,
                "role": self.role,
                "is_active": True,
            },
            "signed_in_at": format_utc_iso(self.started_at),
        }
