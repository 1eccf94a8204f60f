from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import cutoff_instant, now_utc, utc_date_str
from ..common.validators import require_action, require_non_empty
from ..core.constants import LOGS_TABLE, STUDENTS_TABLE, USERS_TABLE
from ..core.enums import FilterOp
from ..core.exceptions import NotFoundError, ValidationError
from ..store.base import Filter, RecordStore
from .model import AttendanceLog, LogEntry
from .normalize import normalize_log_row, normalize_log_rows

logger = logging.getLogger(__name__)

_LOG_FIELDS = ("id", "student_id", "action", "timestamp", "performed_by")


def _newest_first(entries: list[LogEntry]) -> list[LogEntry]:
    dated = [e for e in entries if e.timestamp is not None]
    undated = [e for e in entries if e.timestamp is None]
    dated.sort(key=lambda e: e.timestamp, reverse=True)
    return dated + undated


class AttendanceLogRepository:
    """Append-only access to ``attendance_logs``.

    Store errors propagate untouched; nothing here retries.
    """

    def __init__(self, store: RecordStore):
        self._store = store

    def append_log(
        self,
        student_id: str,
        action,
        performed_by: Optional[str],
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceLog:
        action = require_action(action)
        student_id = require_non_empty(student_id, "student_id")
        timestamp = now or now_utc()

        rows = self._store.insert(
            LOGS_TABLE,
            [
                {
                    "student_id": student_id,
                    "action": action.value,
                    "performed_by": performed_by,
                    "timestamp": timestamp,
                }
            ],
        )
        log_id = str(rows[0]["id"]) if rows else ""
        return AttendanceLog(
            log_id=log_id,
            student_id=student_id,
            action=action,
            performed_by=performed_by,
            timestamp=timestamp,
        )

    def get_logs(
        self,
        *,
        student_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[LogEntry]:
        """Logs newest first, bounded by the UTC calendar date of their timestamp.

        Rows whose timestamp cannot be parsed are left out.
        """

        filters = {"student_id": student_id} if student_id else {}
        rows = self._store.select(LOGS_TABLE, fields=_LOG_FIELDS, filters=filters)

        start = start_date.isoformat() if start_date else None
        end = end_date.isoformat() if end_date else None

        kept: list[LogEntry] = []
        for entry in normalize_log_rows(rows):
            if entry.timestamp is None:
                continue
            day = utc_date_str(entry.timestamp)
            if start and day < start:
                continue
            if end and day > end:
                continue
            kept.append(entry)
        return _newest_first(kept)

    def fetch_joined(self) -> list[LogEntry]:
        """Every log with the student and performer names attached."""

        rows = self._store.select(LOGS_TABLE, fields=_LOG_FIELDS)
        student_ids = sorted({str(r["student_id"]) for r in rows if r.get("student_id")})
        user_ids = sorted({str(r["performed_by"]) for r in rows if r.get("performed_by")})

        students = {}
        if student_ids:
            for s in self._store.select(STUDENTS_TABLE, fields=("id", "first_name", "last_name"), filters={"id": student_ids}):
                students[str(s["id"])] = s
        users = {}
        if user_ids:
            for u in self._store.select(USERS_TABLE, fields=("id", "first_name", "last_name"), filters={"id": user_ids}):
                users[str(u["id"])] = u

        entries = [
            normalize_log_row(
                {
                    **r,
                    "students": students.get(str(r.get("student_id"))),
                    "users": users.get(str(r.get("performed_by"))),
                }
            )
            for r in rows
        ]
        return _newest_first(entries)

    def delete_log(self, log_id: str, *, missing_ok: bool = True) -> bool:
        """Delete one log. Deleting an absent id is a no-op unless ``missing_ok`` is False."""

        if not log_id:
            raise ValidationError("Missing logId")
        removed = self._store.delete(LOGS_TABLE, {"id": log_id})
        if not removed and not missing_ok:
            raise NotFoundError(f"Attendance log {log_id} not found")
        return removed > 0

    def delete_logs_before(self, cutoff_date: Optional[date]) -> int:
        """Delete every log stamped at or before ``cutoff_date`` 23:59:59Z."""

        if not cutoff_date:
            raise ValidationError("Missing cutoff date")
        removed = self._store.delete(LOGS_TABLE, {"timestamp": Filter(FilterOp.LTE, cutoff_instant(cutoff_date))})
        logger.info("deleted %d attendance logs up to %s", removed, cutoff_date.isoformat())
        return removed

    def delete_all(self) -> int:
        removed = self._store.delete(LOGS_TABLE, {"id": Filter(FilterOp.NEQ, "")})
        logger.warning("attendance log wiped (%d rows)", removed)
        return removed
