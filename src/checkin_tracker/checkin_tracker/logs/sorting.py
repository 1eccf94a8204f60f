"""Filter and order attendance log entries for the feed and exports.

Filtering runs search, then the UTC date range, then the action match. Ordering
applies the requested field first and then the remaining fields of
``FALLBACK_SORT_CHAIN``; a comparator is consulted only when every earlier one
returned a tie.
"""

from __future__ import annotations

from datetime import date
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from ..common.datetime_utils import end_of_day_utc, start_of_day_utc
from ..core.constants import FALLBACK_SORT_CHAIN
from ..core.enums import Action, SortDirection, SortField
from .model import LogCriteria, LogEntry
from .normalize import normalize_log_row

FieldAccessor = Callable[[LogEntry], Any]
Comparator = Callable[[LogEntry, LogEntry], int]

DEFAULT_FIELD_MAP: dict[str, FieldAccessor] = {
    "student_name": lambda e: e.student_name,
    "action": lambda e: e.action,
    "timestamp": lambda e: e.raw_timestamp,
    "performed_by": lambda e: e.performer_name,
}

# Direction used when a field appears as a tie-breaker rather than the primary.
FALLBACK_DIRECTIONS: dict[SortField, SortDirection] = {
    SortField.TIMESTAMP: SortDirection.DESC,
    SortField.LAST_NAME: SortDirection.ASC,
    SortField.FIRST_NAME: SortDirection.ASC,
    SortField.PERFORMED_BY: SortDirection.ASC,
    SortField.ACTION: SortDirection.ASC,
}


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _text_cmp(a: Optional[str], b: Optional[str]) -> int:
    return _cmp((a or "").casefold(), (b or "").casefold())


def _directed(result: int, direction: SortDirection) -> int:
    return -result if direction == SortDirection.DESC else result


# --- filtering -------------------------------------------------------------


def matches_search(entry: LogEntry, term: str, field_map: Mapping[str, FieldAccessor]) -> bool:
    values = [accessor(entry) for accessor in field_map.values()]
    haystack = " ".join("" if v is None else str(v) for v in values)
    return term.lower() in haystack.lower()


def in_date_range(entry: LogEntry, start_date: Optional[date], end_date: Optional[date]) -> bool:
    """Inclusive UTC-day bounds; an undated entry fails whenever a bound is set."""

    if start_date is None and end_date is None:
        return True
    if entry.timestamp is None:
        return False
    if start_date is not None and entry.timestamp < start_of_day_utc(start_date):
        return False
    # ends at 23:59:59.999, while AttendanceLogRepository.get_logs compares UTC
    # date strings and keeps a stamp such as 23:59:59.9995 that this drops
    if end_date is not None and entry.timestamp > end_of_day_utc(end_date):
        return False
    return True


def matches_action(entry: LogEntry, action: Optional[Union[Action, str]]) -> bool:
    if not action:
        return True
    wanted = action.value if isinstance(action, Action) else str(action)
    return (entry.action or "").lower() == wanted.lower()


def filter_entries(
    entries: Iterable[LogEntry],
    criteria: LogCriteria,
    field_map: Optional[Mapping[str, FieldAccessor]] = None,
) -> list[LogEntry]:
    field_map = field_map or DEFAULT_FIELD_MAP
    term = (criteria.search or "").strip()

    out: list[LogEntry] = []
    for entry in entries:
        if term and not matches_search(entry, term, field_map):
            continue
        if not in_date_range(entry, criteria.start_date, criteria.end_date):
            continue
        if not matches_action(entry, criteria.action):
            continue
        out.append(entry)
    return out


# --- ordering --------------------------------------------------------------


def compare_timestamp(a: LogEntry, b: LogEntry, direction: SortDirection) -> int:
    # Unparseable instants go last whichever way the list is sorted.
    if a.timestamp is None and b.timestamp is None:
        return 0
    if a.timestamp is None:
        return 1
    if b.timestamp is None:
        return -1
    return _directed(_cmp(a.timestamp, b.timestamp), direction)


def compare_last_name(a: LogEntry, b: LogEntry, direction: SortDirection) -> int:
    return _directed(_text_cmp(a.student_last_name, b.student_last_name), direction)


def compare_first_name(a: LogEntry, b: LogEntry, direction: SortDirection) -> int:
    return _directed(_text_cmp(a.student_first_name, b.student_first_name), direction)


def compare_performed_by(a: LogEntry, b: LogEntry, direction: SortDirection) -> int:
    result = _text_cmp(a.performer_last_name, b.performer_last_name)
    if result == 0:
        result = _text_cmp(a.performer_first_name, b.performer_first_name)
    return _directed(result, direction)


def compare_action(a: LogEntry, b: LogEntry, direction: SortDirection) -> int:
    return _directed(_text_cmp(a.action, b.action), direction)


COMPARATORS: dict[SortField, Callable[[LogEntry, LogEntry, SortDirection], int]] = {
    SortField.TIMESTAMP: compare_timestamp,
    SortField.LAST_NAME: compare_last_name,
    SortField.FIRST_NAME: compare_first_name,
    SortField.PERFORMED_BY: compare_performed_by,
    SortField.ACTION: compare_action,
}


def sort_chain(primary: SortField) -> list[SortField]:
    """``primary`` followed by the rest of the fallback chain in its usual order."""

    primary = SortField(primary)
    return [primary] + [f for f in (SortField(x) for x in FALLBACK_SORT_CHAIN) if f != primary]


def build_comparator(sort_field: SortField, sort_dir: SortDirection) -> Comparator:
    chain = sort_chain(sort_field)
    steps = [(COMPARATORS[chain[0]], SortDirection(sort_dir))]
    steps += [(COMPARATORS[f], FALLBACK_DIRECTIONS[f]) for f in chain[1:]]

    def compare(a: LogEntry, b: LogEntry) -> int:
        for comparator, direction in steps:
            result = comparator(a, b, direction)
            if result:
                return result
        return 0

    return compare


def sort_entries(
    entries: Iterable[LogEntry],
    sort_field: SortField = SortField.TIMESTAMP,
    sort_dir: SortDirection = SortDirection.DESC,
) -> list[LogEntry]:
    return sorted(entries, key=cmp_to_key(build_comparator(sort_field, sort_dir)))


def apply_sort_and_filter(
    rows: Iterable[Union[LogEntry, Mapping[str, Any]]],
    criteria: LogCriteria,
    field_map: Optional[Mapping[str, FieldAccessor]] = None,
) -> list[LogEntry]:
    """Filtered, deterministically ordered entries.

    Raw store rows are accepted too and normalized first.
    """

    entries = [r if isinstance(r, LogEntry) else normalize_log_row(r) for r in rows]
    kept = filter_entries(entries, criteria, field_map)
    return sort_entries(kept, criteria.sort_field, criteria.sort_dir)
