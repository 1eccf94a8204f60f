from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional, Union

from ..common.validators import optional_date
from ..core.enums import Action, SortDirection, SortField
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceLog:
    """Domain entity: one immutable attendance event as written to the store."""

    log_id: str
    student_id: str
    action: Action
    performed_by: Optional[str]
    timestamp: datetime


@dataclass(frozen=True)
class LogEntry:
    """Canonical read model for a log row, whatever shape the store returned.

    ``timestamp`` is None when the stored value cannot be parsed; ``raw_timestamp``
    keeps the original text for display and search.
    """

    log_id: str
    student_id: str
    action: str
    performed_by: Optional[str]
    timestamp: Optional[datetime]
    raw_timestamp: str = ""
    student_first_name: str = ""
    student_last_name: str = ""
    performer_first_name: str = ""
    performer_last_name: str = ""

    @property
    def student_name(self) -> str:
        name = f"{self.student_first_name} {self.student_last_name}".strip()
        return name or "Unknown"

    @property
    def performer_name(self) -> str:
        name = f"{self.performer_first_name} {self.performer_last_name}".strip()
        return name or "Unknown"


@dataclass(frozen=True)
class CompressedInterval:
    """A paired in/out interval for one student; ``check_out`` None means still open."""

    student_id: str
    student_name: str
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    billable_hours: Union[int, str]


@dataclass(frozen=True)
class LogCriteria:
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    action: Optional[Action] = None
    sort_field: SortField = SortField.TIMESTAMP
    sort_dir: SortDirection = SortDirection.DESC

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "LogCriteria":
        """Build criteria from query-string style values.

        ``sort`` takes the dropdown values ``<field>-<asc|desc>``; the legacy
        ``action-in``/``action-out`` values select an action filter instead and
        fall back to newest-first ordering.
        """

        search = (args.get("search") or "").strip() or None
        start = optional_date(args.get("start") or args.get("startDate"), "start")
        end = optional_date(args.get("end") or args.get("endDate"), "end")

        action: Optional[Action] = None
        raw_action = (args.get("action") or "").strip().lower()
        if raw_action:
            try:
                action = Action(raw_action)
            except ValueError:
                raise ValidationError(f"Invalid action: {raw_action}") from None

        sort_field, sort_dir = SortField.TIMESTAMP, SortDirection.DESC
        sort = (args.get("sort") or "").strip()
        if sort in ("in", "out", "action-in", "action-out"):
            action = Action(sort.rsplit("-", 1)[-1])
        elif sort:
            field_part, _, dir_part = sort.partition("-")
            try:
                sort_field = SortField(field_part)
            except ValueError:
                raise ValidationError(f"Invalid sort field: {field_part}") from None
            if dir_part:
                try:
                    sort_dir = SortDirection(dir_part)
                except ValueError:
                    raise ValidationError(f"Invalid sort direction: {dir_part}") from None
            elif sort_field != SortField.TIMESTAMP:
                sort_dir = SortDirection.ASC

        return cls(
            search=search,
            start_date=start,
            end_date=end,
            action=action,
            sort_field=sort_field,
            sort_dir=sort_dir,
        )
