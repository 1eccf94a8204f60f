"""CSV serialization for attendance exports.

``to_csv`` is pure; sending the file is the controller's job.
"""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import format_instant
from ..core.constants import COMPRESSED_FILENAME, CSV_MIMETYPE
from .model import CompressedInterval, LogEntry

LINE_TERMINATOR = "\n"

RAW_HEADERS = ("Name", "Action", "Timestamp", "Performed By")
COMPRESSED_HEADERS = ("Name", "In Timestamp", "Out Timestamp", "Hours")

__all__ = [
    "COMPRESSED_FILENAME",
    "COMPRESSED_HEADERS",
    "CSV_MIMETYPE",
    "RAW_HEADERS",
    "bulk_export_filename",
    "compressed_rows",
    "raw_export_filename",
    "raw_log_rows",
    "to_csv",
]


def to_csv(headers: Sequence[Any], rows: Iterable[Sequence[Any]]) -> str:
    """Quote every cell, double inner quotes, render None as empty.

    Lines are joined with ``\\n`` and there is no trailing newline.
    """

    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator=LINE_TERMINATOR)
    writer.writerow(["" if h is None else h for h in headers])
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return out.getvalue()[: -len(LINE_TERMINATOR)]


def raw_log_rows(entries: Iterable[LogEntry]) -> list[list[str]]:
    return [
        [e.student_name, e.action, format_instant(e.timestamp, e.raw_timestamp), e.performer_name]
        for e in entries
    ]


def compressed_rows(intervals: Iterable[CompressedInterval]) -> list[list[Any]]:
    return [
        [
            c.student_name,
            format_instant(c.check_in),
            format_instant(c.check_out) if c.check_out else "",
            c.billable_hours,
        ]
        for c in intervals
    ]


def raw_export_filename(start_date: Optional[date], end_date: Optional[date]) -> str:
    s = start_date.isoformat() if start_date else "all"
    e = end_date.isoformat() if end_date else "all"
    return f"attendance_{s}_{e}.csv"


def bulk_export_filename(day: date) -> str:
    return f"attendance-logs-{day.isoformat()}.csv"
