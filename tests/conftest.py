from __future__ import annotations

import pytest

from src.checkin_tracker.checkin_tracker.checkio.tasks import BackgroundTaskQueue
from src.checkin_tracker.checkin_tracker.container import build_container
from src.checkin_tracker.checkin_tracker.state import AppState
from src.checkin_tracker.checkin_tracker.store.memory_store import InMemoryRecordStore

STUDENTS = [
    {"id": "s-ada", "first_name": "Ada", "last_name": "Lovelace", "grade": "3", "checked_in": False},
    {"id": "s-alan", "first_name": "Alan", "last_name": "Turing", "grade": "4", "checked_in": False},
    {"id": "s-grace", "first_name": "Grace", "last_name": "Hopper", "grade": "3", "checked_in": True},
]

USERS = [
    {"id": "u-admin", "first_name": "Ann", "last_name": "Admin", "role": "admin", "pin": "0000"},
    {"id": "u-teacher", "first_name": "Tom", "last_name": "Teach", "role": "teacher", "pin": "1111"},
    {"id": "u-parent", "first_name": "Pat", "last_name": "Turing", "role": "parent", "pin": "2222"},
]

RELATIONS = [{"student_id": "s-alan", "parent_id": "u-parent"}]


@pytest.fixture
def store():
    return InMemoryRecordStore(
        {
            "students": STUDENTS,
            "users": USERS,
            "students_parents": RELATIONS,
            "attendance_logs": [],
        }
    )


@pytest.fixture
def state():
    return AppState()


@pytest.fixture
def tasks():
    queue = BackgroundTaskQueue(max_workers=2)
    yield queue
    queue.shutdown(wait=True)


@pytest.fixture
def container(store):
    c = build_container(store=store, background_workers=2)
    yield c
    c.tasks.shutdown(wait=True)


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.checkin_tracker.checkin_tracker.main import create_app

    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()
