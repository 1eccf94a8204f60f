from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Student:
    """Domain entity: a student on the roster.

    Mutable on purpose: ``checked_in`` is flipped in the cached roster by the
    check-in/out workflow before the store confirms the change.
    """

    student_id: str
    first_name: str
    last_name: str
    grade: Optional[str] = None
    checked_in: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def sort_key(self) -> tuple[str, str]:
        return (self.last_name or "").casefold(), (self.first_name or "").casefold()


@dataclass(frozen=True)
class Relation:
    """Student <-> parent link (no identity of its own)."""

    student_id: str
    parent_id: str
