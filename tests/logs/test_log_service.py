from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.checkin_tracker.checkin_tracker.core.exceptions import ValidationError
from src.checkin_tracker.checkin_tracker.logs.model import LogCriteria
from src.checkin_tracker.checkin_tracker.logs.repository import AttendanceLogRepository
from src.checkin_tracker.checkin_tracker.logs.service import LogFeedService
from src.checkin_tracker.checkin_tracker.students.repository import StudentRepository
from src.checkin_tracker.checkin_tracker.users.repository import UserRepository


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def seeded(store):
    store.insert(
        "attendance_logs",
        [
            {"id": "l1", "student_id": "s-ada", "action": "in", "performed_by": "u-teacher", "timestamp": utc(2024, 1, 15, 9, 10)},
            {"id": "l2", "student_id": "s-ada", "action": "out", "performed_by": "u-parent", "timestamp": utc(2024, 1, 15, 12, 5)},
            {"id": "l3", "student_id": "s-alan", "action": "in", "performed_by": "u-teacher", "timestamp": utc(2024, 1, 16, 8, 0)},
        ],
    )
    return store


@pytest.fixture
def service(seeded, state):
    return LogFeedService(
        AttendanceLogRepository(seeded),
        StudentRepository(seeded),
        UserRepository(seeded),
        state,
    )


def test_render_feed_resolves_names_and_publishes(service, state):
    entries = service.render_feed(LogCriteria())

    assert [e.log_id for e in entries] == ["l3", "l2", "l1"]
    assert entries[1].student_name == "Ada Lovelace"
    assert entries[1].performer_name == "Pat Turing"
    assert state.feed is not None
    assert list(state.feed.entries) == entries
    assert {"s-ada", "s-alan"} <= set(state.student_by_id)
    assert {"u-teacher", "u-parent"} <= set(state.user_by_id)


def test_render_feed_applies_criteria(service):
    crit = LogCriteria.from_args({"start": "2024-01-15", "end": "2024-01-15", "sort": "action-in"})
    assert [e.log_id for e in service.render_feed(crit)] == ["l1"]


def test_superseded_render_does_not_overwrite_newer_snapshot(state):
    older = state.begin_feed()
    newer = state.begin_feed()

    assert state.publish_feed(newer, "new", ["b"]) is True
    assert state.publish_feed(older, "old", ["a"]) is False
    assert state.feed.criteria == "new"


def test_export_without_feed_is_rejected(service):
    with pytest.raises(ValidationError, match="No logs available to export."):
        service.export_current()


def test_export_current_uses_feed_dates(service):
    service.render_feed(LogCriteria(start_date=date(2024, 1, 15)))
    export = service.export_current()

    assert export.filename == "attendance_2024-01-15_all.csv"
    lines = export.content.split("\n")
    assert lines[0] == '"Name","Action","Timestamp","Performed By"'
    assert lines[1] == '"Alan Turing","in","2024-01-16 08:00:00","Tom Teach"'
    assert export.row_count == 3


def test_export_compressed_uses_five_minute_grace(service):
    service.render_feed(LogCriteria(search="ada"))
    export = service.export_compressed()

    assert export.filename == "attendance_compressed.csv"
    assert export.content.split("\n")[1] == '"Ada Lovelace","2024-01-15 09:10:00","2024-01-15 12:05:00","3"'


def test_export_all_names_file_after_day(service):
    export = service.export_all(date(2024, 2, 1))
    assert export.filename == "attendance-logs-2024-02-01.csv"
    assert export.row_count == 3


def test_bulk_cleanup_preview_then_delete(service, seeded):
    preview = service.bulk_cleanup_preview(date(2024, 1, 15))
    assert preview.count == 2
    assert preview.export.content.count("\n") == 2

    with pytest.raises(ValidationError):
        service.bulk_cleanup(date(2024, 1, 15))
    assert service.bulk_cleanup(date(2024, 1, 15), confirm=True) == 2
    assert [r["id"] for r in seeded.select("attendance_logs")] == ["l3"]


def test_cleanup_needs_a_cutoff(service):
    with pytest.raises(ValidationError):
        service.bulk_cleanup_preview(None)
    with pytest.raises(ValidationError):
        service.bulk_cleanup(None, confirm=True)


def test_destructive_calls_need_confirmation(service, seeded):
    with pytest.raises(ValidationError):
        service.delete_log("l1")
    with pytest.raises(ValidationError):
        service.wipe()

    assert service.delete_log("l1", confirm=True) is True
    assert service.wipe(confirm=True) == 2
    assert seeded.select("attendance_logs") == []


def test_exports_follow_deletes(service):
    service.render_feed(LogCriteria(start_date=date(2024, 1, 15), end_date=date(2024, 1, 15)))
    assert service.export_current().row_count == 2

    assert service.delete_log("l1", confirm=True) is True
    export = service.export_current()
    assert export.row_count == 1
    assert "09:10:00" not in export.content
    assert export.filename == "attendance_2024-01-15_2024-01-15.csv"

    assert service.bulk_cleanup(date(2024, 1, 15), confirm=True) == 1
    with pytest.raises(ValidationError, match="No logs available to export."):
        service.export_compressed()


def test_wipe_empties_the_feed(service, state):
    service.render_feed(LogCriteria())
    service.wipe(confirm=True)
    assert state.feed.entries == ()
