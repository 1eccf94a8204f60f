from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .checkio.service import CheckIOService
from .checkio.tasks import BackgroundTaskQueue
from .core.constants import DEFAULT_BACKGROUND_WORKERS, EXPORT_GRACE_MINUTES
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .logs.repository import AttendanceLogRepository
from .logs.service import LogFeedService
from .state import AppState
from .store.base import RecordStore
from .store.memory_store import InMemoryRecordStore
from .store.mysql_store import MySQLRecordStore
from .students.repository import StudentRepository
from .users.pin_verifier import LocalPinVerifier, PinVerifier, RemotePinVerifier
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    store: RecordStore
    state: AppState
    tasks: BackgroundTaskQueue

    students_repo: StudentRepository
    users_repo: UserRepository
    logs_repo: AttendanceLogRepository

    auth_service: AuthService
    checkio_service: CheckIOService
    log_feed_service: LogFeedService


def build_store(*, backend: str, db_config: Optional[dict] = None) -> RecordStore:
    backend = (backend or "mysql").lower()
    if backend == "memory":
        return InMemoryRecordStore()
    if backend == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config or {}))
        return MySQLRecordStore(conn)
    raise ValidationError(f"Unknown STORE_BACKEND: {backend}")


def build_container(
    *,
    db_config: Optional[dict] = None,
    store_backend: str = "mysql",
    store: Optional[RecordStore] = None,
    pin_verify_url: str = "",
    pin_verify_timeout: Optional[float] = None,
    export_grace_minutes: int = EXPORT_GRACE_MINUTES,
    background_workers: int = DEFAULT_BACKGROUND_WORKERS,
) -> Container:
    store = store or build_store(backend=store_backend, db_config=db_config)
    state = AppState()
    tasks = BackgroundTaskQueue(max_workers=background_workers)

    students_repo = StudentRepository(store)
    users_repo = UserRepository(store)
    logs_repo = AttendanceLogRepository(store)

    verifier: PinVerifier
    if pin_verify_url:
        verifier = RemotePinVerifier(pin_verify_url, timeout=pin_verify_timeout)
    else:
        verifier = LocalPinVerifier(users_repo)

    auth_service = AuthService(verifier)
    checkio_service = CheckIOService(students_repo, logs_repo, state, tasks)
    log_feed_service = LogFeedService(
        logs_repo,
        students_repo,
        users_repo,
        state,
        export_grace_minutes=export_grace_minutes,
    )

    return Container(
        store=store,
        state=state,
        tasks=tasks,
        students_repo=students_repo,
        users_repo=users_repo,
        logs_repo=logs_repo,
        auth_service=auth_service,
        checkio_service=checkio_service,
        log_feed_service=log_feed_service,
    )
