from __future__ import annotations

from typing import Iterable, Optional

from ..core.constants import USERS_TABLE
from ..core.enums import Role
from ..store.base import RecordStore
from .model import User


def _to_user(row: dict) -> User:
    return User(
        user_id=str(row["id"]),
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        role=Role(row.get("role") or Role.PARENT.value),
        pin=str(row.get("pin") or ""),
    )


class UserRepository:
    def __init__(self, store: RecordStore):
        self._store = store

    def get_many(self, user_ids: Iterable[str]) -> list[User]:
        ids = list(user_ids)
        if not ids:
            return []
        rows = self._store.select(USERS_TABLE, filters={"id": ids})
        return [_to_user(r) for r in rows]

    def get_by_pin(self, pin: str, *, exclude_id: Optional[str] = None) -> Optional[User]:
        """Look up the holder of ``pin``; used for login and the save-time uniqueness check."""

        filters: dict = {"pin": pin}
        if exclude_id:
            filters["id"] = {"op": "neq", "value": exclude_id}
        rows = self._store.select(USERS_TABLE, filters=filters)
        return _to_user(rows[0]) if rows else None
