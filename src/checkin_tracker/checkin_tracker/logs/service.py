from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..common.datetime_utils import now_utc
from ..core.constants import COMPRESSED_FILENAME, EXPORT_GRACE_MINUTES
from ..core.exceptions import ValidationError
from ..state import AppState
from ..students.repository import StudentRepository
from ..users.repository import UserRepository
from .compression import compress_logs
from .csv_export import (
    COMPRESSED_HEADERS,
    RAW_HEADERS,
    bulk_export_filename,
    compressed_rows,
    raw_export_filename,
    raw_log_rows,
    to_csv,
)
from .model import CompressedInterval, LogCriteria, LogEntry
from .normalize import resolve_names
from .repository import AttendanceLogRepository
from .sorting import apply_sort_and_filter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: str
    row_count: int


@dataclass(frozen=True)
class CleanupPreview:
    cutoff: date
    count: int
    export: CsvExport


def _require_confirmation(confirm: bool, what: str) -> None:
    if confirm is not True:
        raise ValidationError(f"Please confirm: {what}")


class LogFeedService:
    """Use cases behind the admin attendance panel: feed, exports, cleanup."""

    def __init__(
        self,
        logs: AttendanceLogRepository,
        students: StudentRepository,
        users: UserRepository,
        state: AppState,
        *,
        export_grace_minutes: int = EXPORT_GRACE_MINUTES,
    ):
        self._logs = logs
        self._students = students
        self._users = users
        self._state = state
        self._export_grace_minutes = int(export_grace_minutes)

    def _with_names(self, entries: Iterable[LogEntry]) -> list[LogEntry]:
        entries = list(entries)

        missing_students = sorted({e.student_id for e in entries if e.student_id and e.student_id not in self._state.student_by_id})
        if missing_students:
            self._state.remember_students(self._students.get_many(missing_students))

        missing_users = sorted({e.performed_by for e in entries if e.performed_by and e.performed_by not in self._state.user_by_id})
        if missing_users:
            self._state.remember_users(self._users.get_many(missing_users))

        return [
            resolve_names(e, student_by_id=self._state.student_by_id, user_by_id=self._state.user_by_id)
            for e in entries
        ]

    def render_feed(self, criteria: LogCriteria) -> list[LogEntry]:
        generation = self._state.begin_feed()
        entries = self._logs.get_logs(start_date=criteria.start_date, end_date=criteria.end_date)
        result = apply_sort_and_filter(self._with_names(entries), criteria)
        if not self._state.publish_feed(generation, criteria, result):
            logger.debug("feed render %d superseded", generation)
        return result

    def _refresh_feed(self) -> None:
        """Re-run the last feed query so exports stop offering deleted rows."""

        snapshot = self._state.feed
        if snapshot is not None:
            self.render_feed(snapshot.criteria)

    def _current_entries(self) -> tuple[Optional[LogCriteria], list[LogEntry]]:
        snapshot = self._state.feed
        if snapshot is None or not snapshot.entries:
            raise ValidationError("No logs available to export.")
        return snapshot.criteria, list(snapshot.entries)

    def export_current(self) -> CsvExport:
        criteria, entries = self._current_entries()
        start = criteria.start_date if criteria else None
        end = criteria.end_date if criteria else None
        return CsvExport(
            filename=raw_export_filename(start, end),
            content=to_csv(RAW_HEADERS, raw_log_rows(entries)),
            row_count=len(entries),
        )

    def compressed(self, grace_minutes: Optional[int] = None) -> list[CompressedInterval]:
        _, entries = self._current_entries()
        grace = self._export_grace_minutes if grace_minutes is None else int(grace_minutes)
        return compress_logs(entries, grace_minutes=grace)

    def export_compressed(self, grace_minutes: Optional[int] = None) -> CsvExport:
        intervals = self.compressed(grace_minutes)
        return CsvExport(
            filename=COMPRESSED_FILENAME,
            content=to_csv(COMPRESSED_HEADERS, compressed_rows(intervals)),
            row_count=len(intervals),
        )

    def export_all(self, today: Optional[date] = None) -> CsvExport:
        entries = self._logs.fetch_joined()
        day = today or now_utc().date()
        return CsvExport(
            filename=bulk_export_filename(day),
            content=to_csv(RAW_HEADERS, raw_log_rows(entries)),
            row_count=len(entries),
        )

    def bulk_cleanup_preview(self, cutoff: Optional[date]) -> CleanupPreview:
        """What a cleanup up to and including ``cutoff`` would remove, with its export."""

        if not cutoff:
            raise ValidationError("Please select a cutoff date.")
        entries = self._with_names(self._logs.get_logs(end_date=cutoff))
        return CleanupPreview(
            cutoff=cutoff,
            count=len(entries),
            export=CsvExport(
                filename=raw_export_filename(None, cutoff),
                content=to_csv(RAW_HEADERS, raw_log_rows(entries)),
                row_count=len(entries),
            ),
        )

    def bulk_cleanup(self, cutoff: Optional[date], *, confirm: bool = False) -> int:
        if not cutoff:
            raise ValidationError("Please select a cutoff date.")
        _require_confirmation(confirm, f"delete logs up to and including {cutoff.isoformat()}")
        removed = self._logs.delete_logs_before(cutoff)
        if removed:
            self._refresh_feed()
        return removed

    def delete_log(self, log_id: str, *, confirm: bool = False) -> bool:
        _require_confirmation(confirm, "delete this attendance log")
        removed = self._logs.delete_log(log_id)
        if removed:
            self._refresh_feed()
        return removed

    def wipe(self, *, confirm: bool = False) -> int:
        _require_confirmation(confirm, "delete every attendance log")
        removed = self._logs.delete_all()
        self._refresh_feed()
        return removed
