"""
Persistence of the signed-in user's token and profile between launches.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Iterator, Optional

from PySide6.QtCore import QSettings

from core.settings import open_qsettings
from shared.session import Session


class CredentialStore:
    """Thin wrapper over QSettings keeping the ``Token`` and ``User`` values together."""

    base_group: str = "Credentials"

    def __init__(self, *, qsettings: Optional[QSettings] = None) -> None:
        self._qsettings = qsettings

    def get_token(self) -> Optional[str]:
        with self._open_group() as store:
            value = store.value("Token")
        return value or None

    def get_user_json(self) -> Optional[str]:
        with self._open_group() as store:
            value = store.value("User")
        return value or None

    def load_payload_json(self) -> Optional[str]:
        """Return the stored session as one JSON document, or None when incomplete."""
        token = self.get_token()
        user_json = self.get_user_json()
        if not token or not user_json:
            return None
        with self._open_group() as store:
            signed_in_at = store.value("SignedInAt")
        return json.dumps(
            {
                "token": token,
                "user": _decode_or_raw(user_json),
                "signed_in_at": signed_in_at or None,
            }
        )

    def save(self, session: Session) -> None:
        payload = session.to_payload()
        with self._open_group() as store:
            store.setValue("Token", payload["token"])
            store.setValue("User", json.dumps(payload["user"], sort_keys=True))
            store.setValue("SignedInAt", payload["signed_in_at"])
        self._sync()

    def clear(self) -> None:
        with self._open_group() as store:
            for name in ("Token", "User", "SignedInAt"):
                store.remove(name)
        self._sync()

    @contextmanager
    def _open_group(self) -> Iterator[QSettings]:
        store = self._store()
        store.beginGroup(self.base_group)
        try:
            yield store
        finally:
            store.endGroup()

    def _store(self) -> QSettings:
        if self._qsettings is None:
            self._qsettings = open_qsettings()
        return self._qsettings

    def _sync(self) -> None:
        self._store().sync()


def _decode_or_raw(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value
