"""
Session payload validation shared by the credential store and sign-in flow.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROLES = ("admin", "hr", "finance", "karyawan")


class SessionValidationError(ValueError):
    """Raised when a session payload is missing required data or is malformed."""


@dataclass(frozen=True)
class SessionConstraints:
    """Schema constraints mirroring the portal's user table."""

    max_username_length: int = 50
    max_name_length: int = 100
    max_email_length: int = 100
    default_role: str = "admin"


def parse_session_json(text: str) -> Dict[str, Any]:
    """Decode a persisted payload, raising SessionValidationError on bad JSON."""
    try:
        raw = json.loads(text)
    except (TypeError, json.JSONDecodeError) as exc:
        raise SessionValidationError(f"Session payload is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise SessionValidationError("Session payload root must be a JSON object.")
    return raw


def load_and_validate_session(payload: Any) -> Dict[str, Any]:
    """
    Validate a login response or persisted session payload.

    The expected shape is ``{"token": str, "user": {...}}`` as returned by
    ``POST /api/auth/login``. Returns a normalized dictionary with defaults
    applied. Inactive accounts are rejected.
    """
    if not isinstance(payload, dict):
        raise SessionValidationError("Session payload must be an object.")

    constraints = SessionConstraints()

    token = _require_string(payload.get("token"), field="token", required=True)

    user = payload.get("user")
    if not isinstance(user, dict):
        raise SessionValidationError("user must be an object.")

    user_id = _require_positive_int(user.get("id"), field="user.id")
    username = _require_string(
        user.get("username"),
        field="user.username",
        max_length=constraints.max_username_length,
        required=True,
    )
    name = _require_string(
        user.get("name"),
        field="user.name",
        max_length=constraints.max_name_length,
        required=False,
    ) or username
    email = _require_string(
        user.get("email"),
        field="user.email",
        max_length=constraints.max_email_length,
        required=False,
    )

    role = _require_string(user.get("role"), field="user.role", required=False) or constraints.default_role
    role = role.lower()
    if role not in ROLES:
        raise SessionValidationError("user.role must be one of: " + ", ".join(ROLES) + ".")

    is_active = user.get("is_active", True)
    if not isinstance(is_active, bool):
        raise SessionValidationError("user.is_active must be a boolean.")
    if not is_active:
        raise SessionValidationError(f"Account {username} is inactive.")

    signed_in_iso: Optional[str] = None
    signed_in_raw = payload.get("signed_in_at")
    if signed_in_raw is not None:
        signed_in_iso = format_utc_iso(parse_iso8601_utc(signed_in_raw))

    return {
        "token": token,
        "user": {
            "id": user_id,
            "username": username,
            "name": name,
            "email": email or None,
            "role": role,
            "is_active": True,
        },
        "signed_in_at": signed_in_iso,
    }


def parse_iso8601_utc(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp that must be expressed in UTC.

    Accepts values ending with 'Z' or an explicit '+00:00' offset.
    """
    if not isinstance(value, str):
        raise SessionValidationError("signed_in_at must be a string.")

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(cleaned)
    except ValueError as exc:
        raise SessionValidationError(
            "signed_in_at must be in ISO-8601 format (e.g. 2026-01-01T08:00:00Z)."
        ) from exc

    if dt.tzinfo is None or dt.utcoffset() != timezone.utc.utcoffset(None):
        raise SessionValidationError("signed_in_at must be specified in UTC.")

    return dt.astimezone(timezone.utc)


def format_utc_iso(dt: datetime) -> str:
    """Return a canonical UTC ISO-8601 string with trailing 'Z'."""
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _require_string(
    value: Any,
    *,
    field: str,
    max_length: Optional[int] = None,
    required: bool,
) -> str:
    """Validate that a value is a string in accordance with constraints."""
    if value is None:
        if required:
            raise SessionValidationError(f"{field} is required.")
        return ""

    if not isinstance(value, str):
        raise SessionValidationError(f"{field} must be a string.")

    stripped = value.strip()
    if required and stripped == "":
        raise SessionValidationError(f"{field} must be a non-empty string.")

    if max_length is not None and len(stripped) > max_length:
        raise SessionValidationError(f"{field} must be at most {max_length} characters.")

    return stripped


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SessionValidationError(f"{field} must be a positive integer.")
    if value <= 0:
        raise SessionValidationError(f"{field} must be greater than zero.")
    return value
