from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

from ..common.datetime_utils import HALF_HOUR, ONE_HOUR, parse_instant
from ..core.constants import BILLING_ERROR, DEFAULT_GRACE_MINUTES
from .model import CompressedInterval, LogEntry


def round_up_half_hour(instant: datetime) -> datetime:
    """Next :00/:30 boundary; an instant already on a boundary is kept."""

    floor = round_down_half_hour(instant)
    return floor if floor == instant else floor + HALF_HOUR


def round_down_half_hour(instant: datetime) -> datetime:
    return instant.replace(minute=0 if instant.minute < 30 else 30, second=0, microsecond=0)


def billable_hours(
    check_in,
    check_out,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
) -> Union[int, str]:
    """Whole-hour billing units for one in/out pair.

    Start is rounded up to a half-hour and pushed forward by the grace period,
    end is rounded down and pulled back by it; every hourly step from start
    that does not pass end counts as one hour.
    """

    start = parse_instant(check_in)
    end = parse_instant(check_out)
    if start is None or end is None:
        return BILLING_ERROR

    grace = timedelta(minutes=int(grace_minutes or 0))
    start_block = round_up_half_hour(start) + grace
    end_block = round_down_half_hour(end) - grace
    if end_block <= start_block:
        return BILLING_ERROR

    hours = 0
    cursor = start_block
    while cursor <= end_block:
        hours += 1
        cursor += ONE_HOUR
    return hours


def _pair_events(entries: list[LogEntry]) -> list[tuple[LogEntry, Optional[LogEntry]]]:
    pairs: list[tuple[LogEntry, Optional[LogEntry]]] = []
    open_in: Optional[LogEntry] = None
    for e in entries:
        action = (e.action or "").lower()
        if action == "in":
            # an unclosed earlier "in" is dropped
            open_in = e
        elif action == "out" and open_in is not None:
            pairs.append((open_in, e))
            open_in = None
    if open_in is not None:
        pairs.append((open_in, None))
    return pairs


def compress_logs(
    logs: Iterable[LogEntry],
    *,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
) -> list[CompressedInterval]:
    """Pair each student's in/out events into intervals with billable hours.

    Students keep the order in which they first appear in ``logs``.
    """

    grouped: dict[str, list[LogEntry]] = {}
    for entry in logs:
        grouped.setdefault(entry.student_id, []).append(entry)

    out: list[CompressedInterval] = []
    for student_id, entries in grouped.items():
        entries.sort(key=lambda e: (e.timestamp is None, e.timestamp or datetime.min))
        for check_in, check_out in _pair_events(entries):
            out.append(
                CompressedInterval(
                    student_id=student_id,
                    student_name=check_in.student_name,
                    check_in=check_in.timestamp,
                    check_out=check_out.timestamp if check_out else None,
                    billable_hours=billable_hours(
                        check_in.timestamp,
                        check_out.timestamp if check_out else None,
                        grace_minutes,
                    ),
                )
            )
    return out
