from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.checkin_tracker.checkin_tracker.core.enums import Action, SortDirection, SortField
from src.checkin_tracker.checkin_tracker.core.exceptions import ValidationError
from src.checkin_tracker.checkin_tracker.logs.model import LogCriteria, LogEntry
from src.checkin_tracker.checkin_tracker.logs.sorting import apply_sort_and_filter, sort_chain


def _entry(log_id, first, last, action="in", ts="2024-01-15T08:00:00Z", performer=("Tom", "Teach")):
    parsed = None
    if ts and ts.endswith("Z"):
        parsed = datetime.fromisoformat(ts[:-1]).replace(tzinfo=timezone.utc)
    return LogEntry(
        log_id=log_id,
        student_id=f"s-{log_id}",
        action=action,
        performed_by="u-1",
        timestamp=parsed,
        raw_timestamp=ts or "",
        student_first_name=first,
        student_last_name=last,
        performer_first_name=performer[0],
        performer_last_name=performer[1],
    )


def _ids(entries):
    return [e.log_id for e in entries]


def test_search_without_match_returns_nothing():
    rows = [_entry("1", "Ada", "Lovelace"), _entry("2", "Alan", "Turing")]
    assert apply_sort_and_filter(rows, LogCriteria(search="zzz")) == []


def test_search_is_case_insensitive_over_student_and_performer():
    rows = [
        _entry("1", "Ada", "Lovelace"),
        _entry("2", "Alan", "Turing", performer=("Grace", "Hopper")),
    ]
    assert _ids(apply_sort_and_filter(rows, LogCriteria(search="LOVE"))) == ["1"]
    assert _ids(apply_sort_and_filter(rows, LogCriteria(search="hopper"))) == ["2"]


def test_end_date_includes_whole_utc_day():
    rows = [
        _entry("late", "A", "A", ts="2024-01-15T23:59:59Z"),
        _entry("next", "B", "B", ts="2024-01-16T00:00:00Z"),
        _entry("before", "C", "C", ts="2024-01-14T23:59:59Z"),
    ]
    crit = LogCriteria(start_date=date(2024, 1, 15), end_date=date(2024, 1, 15))
    assert _ids(apply_sort_and_filter(rows, crit)) == ["late"]


def test_undated_rows_drop_only_when_a_bound_is_set():
    rows = [_entry("ok", "A", "A"), _entry("bad", "B", "B", ts="not-a-date")]

    assert _ids(apply_sort_and_filter(rows, LogCriteria())) == ["ok", "bad"]
    assert _ids(apply_sort_and_filter(rows, LogCriteria(end_date=date(2024, 12, 31)))) == ["ok"]


def test_date_filter_is_idempotent():
    rows = [
        _entry("1", "A", "A", ts="2024-01-10T10:00:00Z"),
        _entry("2", "B", "B", ts="2024-01-12T10:00:00Z"),
        _entry("3", "C", "C", ts="2024-01-20T10:00:00Z"),
    ]
    crit = LogCriteria(start_date=date(2024, 1, 11), end_date=date(2024, 1, 15))
    once = apply_sort_and_filter(rows, crit)
    assert apply_sort_and_filter(once, crit) == once


def test_action_filter_ignores_case():
    rows = [_entry("1", "A", "A", action="IN"), _entry("2", "B", "B", action="out")]
    assert _ids(apply_sort_and_filter(rows, LogCriteria(action=Action.IN))) == ["1"]


def test_default_order_is_newest_first_with_unparseable_last():
    rows = [
        _entry("bad", "Z", "Z", ts="garbage"),
        _entry("old", "A", "A", ts="2024-01-01T08:00:00Z"),
        _entry("new", "B", "B", ts="2024-01-02T08:00:00Z"),
    ]
    assert _ids(apply_sort_and_filter(rows, LogCriteria())) == ["new", "old", "bad"]

    asc = LogCriteria(sort_field=SortField.TIMESTAMP, sort_dir=SortDirection.ASC)
    assert _ids(apply_sort_and_filter(rows, asc)) == ["old", "new", "bad"]


def test_equal_timestamps_fall_back_to_last_then_first_name():
    rows = [
        _entry("baker", "Amy", "Baker"),
        _entry("zed", "Zed", "adams"),
        _entry("bob", "Bob", "Adams"),
    ]
    assert _ids(apply_sort_and_filter(rows, LogCriteria())) == ["bob", "zed", "baker"]


def test_primary_field_direction_then_timestamp_desc():
    rows = [
        _entry("t1", "Alan", "Turing", ts="2024-01-01T08:00:00Z"),
        _entry("h", "Grace", "Hopper", ts="2024-01-03T08:00:00Z"),
        _entry("t2", "Alan", "Turing", ts="2024-01-02T08:00:00Z"),
    ]
    crit = LogCriteria(sort_field=SortField.LAST_NAME, sort_dir=SortDirection.DESC)
    assert _ids(apply_sort_and_filter(rows, crit)) == ["t2", "t1", "h"]


def test_performed_by_sorts_on_performer_last_then_first():
    rows = [
        _entry("1", "A", "A", performer=("Zoe", "Smith")),
        _entry("2", "A", "A", performer=("Amy", "Smith")),
        _entry("3", "A", "A", performer=("Yan", "Jones")),
    ]
    crit = LogCriteria(sort_field=SortField.PERFORMED_BY, sort_dir=SortDirection.ASC)
    assert _ids(apply_sort_and_filter(rows, crit)) == ["3", "2", "1"]


def test_sort_chain_moves_primary_to_front():
    assert sort_chain(SortField.ACTION) == [
        SortField.ACTION,
        SortField.TIMESTAMP,
        SortField.LAST_NAME,
        SortField.FIRST_NAME,
        SortField.PERFORMED_BY,
    ]


def test_raw_rows_are_normalized_before_filtering():
    rows = [
        {
            "id": "1",
            "student_id": "s1",
            "action": "in",
            "timestamp": "2024-01-15T08:00:00Z",
            "students": {"first_name": "Ada", "last_name": "Lovelace"},
            "users": {"first_name": "Tom", "last_name": "Teach"},
        }
    ]
    result = apply_sort_and_filter(rows, LogCriteria(search="ada"))
    assert [e.student_name for e in result] == ["Ada Lovelace"]


class TestCriteriaFromArgs:
    def test_field_without_direction_sorts_ascending(self):
        crit = LogCriteria.from_args({"sort": "lastName"})
        assert (crit.sort_field, crit.sort_dir) == (SortField.LAST_NAME, SortDirection.ASC)

    def test_legacy_action_values_become_a_filter(self):
        crit = LogCriteria.from_args({"sort": "action-out"})
        assert crit.action == Action.OUT
        assert (crit.sort_field, crit.sort_dir) == (SortField.TIMESTAMP, SortDirection.DESC)

    def test_dates_and_search(self):
        crit = LogCriteria.from_args({"start": "2024-01-01", "endDate": "2024-01-31", "search": "  ada "})
        assert crit.start_date == date(2024, 1, 1)
        assert crit.end_date == date(2024, 1, 31)
        assert crit.search == "ada"

    @pytest.mark.parametrize(
        "args",
        [
            {"sort": "height-asc"},
            {"sort": "timestamp-sideways"},
            {"start": "15/01/2024"},
            {"action": "maybe"},
        ],
    )
    def test_bad_values_are_rejected(self, args):
        with pytest.raises(ValidationError):
            LogCriteria.from_args(args)
