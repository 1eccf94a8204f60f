from __future__ import annotations

from typing import Iterable, Sequence

from ..core.constants import RELATIONS_TABLE, STUDENTS_TABLE
from ..store.base import RecordStore
from .model import Relation, Student

_STUDENT_FIELDS = ("id", "first_name", "last_name", "grade", "checked_in")


def _to_student(row: dict) -> Student:
    return Student(
        student_id=str(row["id"]),
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        grade=None if row.get("grade") is None else str(row["grade"]),
        checked_in=bool(row.get("checked_in")),
    )


class StudentRepository:
    """Roster reads plus the single write the check-in workflow needs."""

    def __init__(self, store: RecordStore):
        self._store = store

    def list_students(self) -> list[Student]:
        rows = self._store.select(STUDENTS_TABLE, fields=_STUDENT_FIELDS)
        return [_to_student(r) for r in rows]

    def get_many(self, student_ids: Iterable[str]) -> list[Student]:
        ids = list(student_ids)
        if not ids:
            return []
        rows = self._store.select(STUDENTS_TABLE, fields=_STUDENT_FIELDS, filters={"id": ids})
        return [_to_student(r) for r in rows]

    def set_checked_in(self, student_ids: Sequence[str], checked_in: bool) -> list[Student]:
        """One batched update for exactly ``student_ids``."""

        if not student_ids:
            return []
        rows = self._store.update(STUDENTS_TABLE, {"checked_in": bool(checked_in)}, {"id": list(student_ids)})
        return [_to_student(r) for r in rows]

    def list_relations(self) -> list[Relation]:
        rows = self._store.select(RELATIONS_TABLE, fields=("student_id", "parent_id"))
        return [Relation(student_id=str(r["student_id"]), parent_id=str(r["parent_id"])) for r in rows]
