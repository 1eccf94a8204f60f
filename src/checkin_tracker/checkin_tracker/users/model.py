from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: staff member or parent.

    Note: plain data object (no DB access code).
    """

    user_id: str
    first_name: str
    last_name: str
    role: Role
    pin: str = ""


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    role: Role
