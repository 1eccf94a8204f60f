"""Map every wire shape of a log row onto ``LogEntry``.

Rows come back from the store as plain ``attendance_logs`` rows, as rows with
nested ``students``/``users`` objects (joined reads), or with flat
``student_first_name``-style columns. The timestamp may live under
``timestamp``, ``_timestampISO``, ``created_at`` or ``inserted_at``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from ..common.datetime_utils import parse_instant
from ..students.model import Student
from ..users.model import User
from .model import LogEntry

_TIMESTAMP_KEYS = ("timestamp", "_timestampISO", "created_at", "inserted_at")


def _raw_timestamp(row: Mapping[str, Any]) -> Any:
    for key in _TIMESTAMP_KEYS:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _nested(row: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    for key in keys:
        value = row.get(key)
        if isinstance(value, Mapping):
            return value
        # one-element list from a to-many style join
        if isinstance(value, list) and value and isinstance(value[0], Mapping):
            return value[0]
    return {}


def normalize_log_row(
    row: Mapping[str, Any],
    *,
    student_by_id: Optional[Mapping[str, Student]] = None,
    user_by_id: Optional[Mapping[str, User]] = None,
) -> LogEntry:
    raw_ts = _raw_timestamp(row)
    if isinstance(raw_ts, datetime):
        raw_text = raw_ts.isoformat()
    else:
        raw_text = _text(raw_ts)

    student_id = _text(row.get("student_id"))
    performed_by = row.get("performed_by")
    performed_by = None if performed_by in (None, "") else str(performed_by)

    nested_student = _nested(row, "students", "student")
    s_first = nested_student.get("first_name") or row.get("student_first_name")
    s_last = nested_student.get("last_name") or row.get("student_last_name")
    if s_first is None and s_last is None and student_by_id:
        cached = student_by_id.get(student_id)
        if cached:
            s_first, s_last = cached.first_name, cached.last_name

    nested_user = _nested(row, "users", "performer")
    p_first = nested_user.get("first_name") or row.get("performer_first_name")
    p_last = nested_user.get("last_name") or row.get("performer_last_name")
    if p_first is None and p_last is None and user_by_id and performed_by:
        cached_user = user_by_id.get(performed_by)
        if cached_user:
            p_first, p_last = cached_user.first_name, cached_user.last_name

    return LogEntry(
        log_id=_text(row.get("id")),
        student_id=student_id,
        action=_text(row.get("action")),
        performed_by=performed_by,
        timestamp=parse_instant(raw_ts),
        raw_timestamp=raw_text,
        student_first_name=_text(s_first),
        student_last_name=_text(s_last),
        performer_first_name=_text(p_first),
        performer_last_name=_text(p_last),
    )


def normalize_log_rows(
    rows: Iterable[Mapping[str, Any]],
    *,
    student_by_id: Optional[Mapping[str, Student]] = None,
    user_by_id: Optional[Mapping[str, User]] = None,
) -> list[LogEntry]:
    return [normalize_log_row(r, student_by_id=student_by_id, user_by_id=user_by_id) for r in rows]


def resolve_names(
    entry: LogEntry,
    *,
    student_by_id: Mapping[str, Student],
    user_by_id: Mapping[str, User],
) -> LogEntry:
    """Fill blank student/performer names from the caches."""

    changes: dict[str, str] = {}
    if not (entry.student_first_name or entry.student_last_name):
        s = student_by_id.get(entry.student_id)
        if s:
            changes.update(student_first_name=s.first_name, student_last_name=s.last_name)
    if not (entry.performer_first_name or entry.performer_last_name) and entry.performed_by:
        u = user_by_id.get(entry.performed_by)
        if u:
            changes.update(performer_first_name=u.first_name, performer_last_name=u.last_name)
    return replace(entry, **changes) if changes else entry
