"""
Authentication provider holding the current portal session.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from core.credential_store import CredentialStore
from payroll_portal.payroll_portal import logger as app_logger
from shared.session import Session
from shared.session_schema import (
    SessionValidationError,
    load_and_validate_session,
    parse_session_json,
)


class LogoutError(RuntimeError):
    """Raised when the server-side part of a logout fails."""


class AuthProvider(Protocol):
    @property
    def current_session(self) -> Optional[Session]: ...

    def logout(self) -> None: ...


class SessionAuthProvider:
    """
    Keeps the signed-in session in memory and in the credential store.

    ``revoke_hook`` receives the outgoing session during ``logout`` and is the
    place for any server-side invalidation. Local credentials are always
    cleared before it runs.
    """

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        *,
        revoke_hook: Optional[Callable[[Session], None]] = None,
    ) -> None:
        self._store = store or CredentialStore()
        self._revoke_hook = revoke_hook
        self._session: Optional[Session] = None
        self._logger = app_logger.get_logger()

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    def is_authenticated(self) -> bool:
        return self._session is not None

    def login(self, payload: Any) -> Session:
        normalized = load_and_validate_session(payload)
        session = Session(normalized)
        self._store.save(session)
        self._session = session
        self._logger.info("User {} signed in with role {}", session.username, session.role)
        return session

    def restore(self) -> Optional[Session]:
        raw = self._store.load_payload_json()
        if raw is None:
            return None
        try:
            session = Session(load_and_validate_session(parse_session_json(raw)))
        except SessionValidationError as exc:
            self._logger.warning("Discarding stored credentials: {}", exc)
            self._store.clear()
            return None
        self._session = session
        self._logger.info("Restored session for user {}", session.username)
        return session

    def logout(self) -> None:
        session = self._session
        self._session = None
        self._store.clear()
        if session is None:
            return
        self._logger.info("User {} signed out", session.username)
        if self._revoke_hook is None:
            return
        try:
            self._revoke_hook(session)
        except Exception as exc:
            raise LogoutError(f"Server-side logout failed for {session.username}: {exc}") from exc
