from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone

from src.checkin_tracker.checkin_tracker.logs.csv_export import (
    COMPRESSED_HEADERS,
    RAW_HEADERS,
    bulk_export_filename,
    compressed_rows,
    raw_export_filename,
    raw_log_rows,
    to_csv,
)
from src.checkin_tracker.checkin_tracker.logs.model import CompressedInterval, LogEntry


def test_every_cell_is_quoted_and_inner_quotes_doubled():
    text = to_csv(["Name", "Note"], [["Smith, Jo", 'say "hi"'], ["plain", None]])
    assert text == '"Name","Note"\n"Smith, Jo","say ""hi"""\n"plain",""'


def test_no_trailing_newline():
    assert not to_csv(["A"], [["1"], ["2"]]).endswith("\n")


def test_reads_back_with_csv_reader():
    rows = [["a,b", 'quote "q"', "two\nlines"], ["", "x", "3"]]
    text = to_csv(["c1", "c2", "c3"], rows)

    parsed = list(csv.reader(io.StringIO(text)))
    assert parsed == [["c1", "c2", "c3"]] + rows


def test_raw_rows_format_timestamp_and_fill_unknown_names():
    entry = LogEntry(
        log_id="1",
        student_id="s1",
        action="in",
        performed_by=None,
        timestamp=datetime(2024, 1, 15, 8, 5, 9, 123000, tzinfo=timezone.utc),
        raw_timestamp="2024-01-15T08:05:09.123Z",
        student_first_name="Ada",
        student_last_name="Lovelace",
    )
    assert raw_log_rows([entry]) == [["Ada Lovelace", "in", "2024-01-15 08:05:09", "Unknown"]]
    assert to_csv(RAW_HEADERS, []) == '"Name","Action","Timestamp","Performed By"'


def test_compressed_rows_leave_open_out_blank():
    interval = CompressedInterval(
        student_id="s1",
        student_name="Ada Lovelace",
        check_in=datetime(2024, 1, 15, 9, 10, tzinfo=timezone.utc),
        check_out=None,
        billable_hours="Error",
    )
    text = to_csv(COMPRESSED_HEADERS, compressed_rows([interval]))
    assert text.splitlines()[1] == '"Ada Lovelace","2024-01-15 09:10:00","","Error"'


def test_filenames():
    assert raw_export_filename(date(2024, 1, 1), None) == "attendance_2024-01-01_all.csv"
    assert raw_export_filename(None, None) == "attendance_all_all.csv"
    assert bulk_export_filename(date(2024, 2, 29)) == "attendance-logs-2024-02-29.csv"
