from __future__ import annotations

from datetime import datetime, timezone

from src.checkin_tracker.checkin_tracker.core.enums import Role
from src.checkin_tracker.checkin_tracker.logs.normalize import normalize_log_row, resolve_names
from src.checkin_tracker.checkin_tracker.students.model import Student
from src.checkin_tracker.checkin_tracker.users.model import User

STAMP = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def test_nested_objects():
    entry = normalize_log_row(
        {
            "id": 7,
            "student_id": "s1",
            "action": "in",
            "performed_by": "u1",
            "timestamp": "2024-01-15T08:00:00Z",
            "students": {"first_name": "Ada", "last_name": "Lovelace"},
            "users": {"first_name": "Tom", "last_name": "Teach"},
        }
    )
    assert entry.log_id == "7"
    assert entry.timestamp == STAMP
    assert entry.student_name == "Ada Lovelace"
    assert entry.performer_name == "Tom Teach"


def test_nested_one_element_lists_and_alternate_keys():
    entry = normalize_log_row(
        {
            "id": "1",
            "student_id": "s1",
            "action": "out",
            "_timestampISO": "2024-01-15T08:00:00+00:00",
            "student": [{"first_name": "Ada", "last_name": "Lovelace"}],
            "performer": [{"first_name": "Pat", "last_name": "Turing"}],
        }
    )
    assert entry.timestamp == STAMP
    assert (entry.student_name, entry.performer_name) == ("Ada Lovelace", "Pat Turing")


def test_flat_name_columns_and_created_at():
    entry = normalize_log_row(
        {
            "id": "1",
            "student_id": "s1",
            "action": "in",
            "created_at": "2024-01-15T08:00:00Z",
            "student_first_name": "Ada",
            "student_last_name": "Lovelace",
            "performer_first_name": "Tom",
            "performer_last_name": "Teach",
        }
    )
    assert entry.timestamp == STAMP
    assert entry.student_name == "Ada Lovelace"
    assert entry.performer_name == "Tom Teach"


def test_naive_datetime_is_taken_as_utc():
    entry = normalize_log_row({"id": "1", "student_id": "s1", "action": "in", "timestamp": datetime(2024, 1, 15, 8, 0)})
    assert entry.timestamp == STAMP


def test_unparseable_timestamp_keeps_raw_text():
    entry = normalize_log_row({"id": "1", "student_id": "s1", "action": "in", "inserted_at": "yesterday"})
    assert entry.timestamp is None
    assert entry.raw_timestamp == "yesterday"


def test_names_fall_back_to_caches():
    students = {"s1": Student(student_id="s1", first_name="Ada", last_name="Lovelace")}
    users = {"u1": User(user_id="u1", first_name="Tom", last_name="Teach", role=Role.TEACHER)}
    row = {"id": "1", "student_id": "s1", "action": "in", "performed_by": "u1", "timestamp": STAMP}

    entry = normalize_log_row(row, student_by_id=students, user_by_id=users)
    assert (entry.student_name, entry.performer_name) == ("Ada Lovelace", "Tom Teach")

    bare = normalize_log_row(row)
    assert (bare.student_name, bare.performer_name) == ("Unknown", "Unknown")
    resolved = resolve_names(bare, student_by_id=students, user_by_id=users)
    assert (resolved.student_name, resolved.performer_name) == ("Ada Lovelace", "Tom Teach")
