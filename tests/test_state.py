from __future__ import annotations

from src.checkin_tracker.checkin_tracker.state import AppState
from src.checkin_tracker.checkin_tracker.students.model import Relation, Student


def test_cache_fill_does_not_disturb_a_reader_mid_iteration():
    state = AppState()
    state.replace_roster([Student("s1", "Ada", "Lovelace"), Student("s2", "Alan", "Turing")], [])

    reading = iter(state.student_by_id.values())
    first = next(reading)
    state.remember_students([Student("s3", "Grace", "Hopper")])

    assert [first.student_id] + [s.student_id for s in reading] == ["s1", "s2"]
    assert sorted(state.student_by_id) == ["s1", "s2", "s3"]


def test_set_checked_in_only_touches_known_students():
    state = AppState()
    state.replace_roster([Student("s1", "Ada", "Lovelace")], [Relation("s1", "p1")])

    state.set_checked_in(["s1", "ghost"], True)

    assert [s.checked_in for s in state.students()] == [True]
    assert state.child_ids("p1") == {"s1"}
    assert state.child_ids("p2") == set()
