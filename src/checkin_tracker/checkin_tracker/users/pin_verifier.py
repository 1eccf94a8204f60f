"""PIN verification collaborators.

``RemotePinVerifier`` calls the hosted ``verify-pin`` function; ``LocalPinVerifier``
checks the users table directly and is used when no endpoint is configured.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests

from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .model import SessionUser
from .repository import UserRepository

logger = logging.getLogger(__name__)


class PinVerifier(Protocol):
    def verify(self, pin: str) -> SessionUser:
        raise NotImplementedError


def _session_user(role, user_id) -> SessionUser:
    try:
        return SessionUser(user_id=str(user_id or ""), role=Role(str(role)))
    except ValueError:
        raise AuthenticationError(f"Unknown role: {role}") from None


class RemotePinVerifier:
    def __init__(self, url: str, *, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self._url = url
        self._timeout = timeout
        self._http = session or requests.Session()

    def verify(self, pin: str) -> SessionUser:
        try:
            resp = self._http.post(self._url, json={"pin": pin}, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error("PIN verification request failed: %s", exc)
            raise AuthenticationError("Network error. Please try again.") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if not resp.ok:
            raise AuthenticationError(data.get("error") or "Login failed")
        return _session_user(data.get("role"), data.get("user_id"))


class LocalPinVerifier:
    def __init__(self, users: UserRepository):
        self._users = users

    def verify(self, pin: str) -> SessionUser:
        user = self._users.get_by_pin(pin)
        if not user:
            raise AuthenticationError("Invalid PIN")
        return SessionUser(user_id=user.user_id, role=user.role)
