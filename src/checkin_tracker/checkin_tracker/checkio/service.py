from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence

from ..common.validators import require_ids
from ..core.enums import Action, Role
from ..core.exceptions import AuthorizationError, NotFoundError, StoreError
from ..logs.repository import AttendanceLogRepository
from ..state import AppState
from ..students.model import Student
from ..students.repository import StudentRepository
from .tasks import BackgroundTaskQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckIOView:
    checked_in: tuple[Student, ...]
    checked_out: tuple[Student, ...]

    def to_dict(self) -> dict:
        def row(s: Student) -> dict:
            return {
                "id": s.student_id,
                "first_name": s.first_name,
                "last_name": s.last_name,
                "grade": s.grade,
                "checked_in": s.checked_in,
            }

        return {
            "checked_in": [row(s) for s in self.checked_in],
            "checked_out": [row(s) for s in self.checked_out],
        }


@dataclass(frozen=True)
class ToggleResult:
    view: CheckIOView
    action: Action
    student_ids: tuple[str, ...]
    log_tasks: tuple[Future, ...]


@dataclass(frozen=True)
class DriftReport:
    student_id: str
    student_name: str
    checked_in: bool
    latest_action: Optional[str]

    @property
    def expected_checked_in(self) -> bool:
        return self.latest_action == Action.IN.value


class CheckIOService:
    """Use case: move students between checked-in and checked-out.

    ``view`` reloads the roster from the store; ``toggle`` updates the cached
    roster optimistically before writing the store. The store flag and
    the attendance log are written separately and may drift (see ``find_drift``).
    """

    def __init__(
        self,
        students: StudentRepository,
        logs: AttendanceLogRepository,
        state: AppState,
        tasks: BackgroundTaskQueue,
    ):
        self._students = students
        self._logs = logs
        self._state = state
        self._tasks = tasks

    def load_roster(self) -> None:
        # independent reads, joined before anything is built from them
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="roster") as pool:
            students_f = pool.submit(self._students.list_students)
            relations_f = pool.submit(self._students.list_relations)
            students, relations = students_f.result(), relations_f.result()
        self._state.replace_roster(students, relations)

    def _ensure_roster(self) -> None:
        if not self._state.roster_loaded:
            self.load_roster()

    def view(self, *, role: Optional[Role] = None, user_id: Optional[str] = None) -> CheckIOView:
        """Fresh roster from the store, partitioned for the caller."""

        self.load_roster()
        return self._cached_view(role=role, user_id=user_id)

    def _cached_view(self, *, role: Optional[Role] = None, user_id: Optional[str] = None) -> CheckIOView:
        # copies, so later toggles do not rewrite a view already handed out
        students = sorted((replace(s) for s in self._state.students()), key=Student.sort_key)
        checked_in = [s for s in students if s.checked_in]
        checked_out = [s for s in students if not s.checked_in]

        # Parents only see their own children among the checked-in.
        if role == Role.PARENT and user_id:
            children = self._state.child_ids(user_id)
            checked_in = [s for s in checked_in if s.student_id in children]

        return CheckIOView(checked_in=tuple(checked_in), checked_out=tuple(checked_out))

    def _authorize(self, ids: Sequence[str], new_status: bool, role: Optional[Role], performed_by: Optional[str]) -> None:
        if role != Role.PARENT:
            return
        if new_status:
            raise AuthorizationError("Parents can only check students out")
        children = self._state.child_ids(performed_by or "")
        strangers = [i for i in ids if i not in children]
        if strangers:
            raise AuthorizationError("Parents can only check out their own children")

    def toggle(
        self,
        student_ids: Iterable[str],
        new_status: bool,
        *,
        performed_by: Optional[str],
        role: Optional[Role] = None,
    ) -> ToggleResult:
        ids = require_ids(student_ids)
        self._ensure_roster()

        missing = [i for i in ids if i not in self._state.student_by_id]
        if missing:
            # added since the last load
            self.load_roster()
            missing = [i for i in ids if i not in self._state.student_by_id]
        if missing:
            raise NotFoundError(f"Unknown students: {', '.join(missing)}")
        self._authorize(ids, new_status, role, performed_by)

        self._state.set_checked_in(ids, bool(new_status))

        try:
            self._students.set_checked_in(ids, bool(new_status))
        except StoreError:
            logger.exception("Check-in/out failed for %d students", len(ids))
            raise

        view = self._cached_view(role=role, user_id=performed_by)

        action = Action.for_status(new_status)
        tasks = tuple(
            self._tasks.submit(
                self._logs.append_log,
                student_id,
                action,
                performed_by,
                description=f"log {action.value} for {student_id}",
            )
            for student_id in ids
        )
        return ToggleResult(view=view, action=action, student_ids=tuple(ids), log_tasks=tasks)

    def check_in(self, student_ids: Iterable[str], *, performed_by: Optional[str], role: Optional[Role] = None) -> ToggleResult:
        return self.toggle(student_ids, True, performed_by=performed_by, role=role)

    def check_out(self, student_ids: Iterable[str], *, performed_by: Optional[str], role: Optional[Role] = None) -> ToggleResult:
        return self.toggle(student_ids, False, performed_by=performed_by, role=role)

    def find_drift(self) -> list[DriftReport]:
        """Students whose stored flag disagrees with their most recent log.

        A student with no logs is expected to be checked out.
        """

        latest: dict[str, str] = {}
        for entry in self._logs.get_logs():
            # newest first, so the first entry seen per student wins
            latest.setdefault(entry.student_id, (entry.action or "").lower())

        reports: list[DriftReport] = []
        for s in sorted(self._students.list_students(), key=Student.sort_key):
            report = DriftReport(
                student_id=s.student_id,
                student_name=s.full_name,
                checked_in=s.checked_in,
                latest_action=latest.get(s.student_id),
            )
            if report.checked_in != report.expected_checked_in:
                reports.append(report)
        return reports

    def repair_drift(self) -> list[DriftReport]:
        """Rewrite drifted flags from the log; the log is never touched."""

        reports = self.find_drift()
        for status in (True, False):
            ids = [r.student_id for r in reports if r.expected_checked_in == status]
            if not ids:
                continue
            self._students.set_checked_in(ids, status)
            self._state.set_checked_in(ids, status)
            logger.warning("repaired %d drifted students to checked_in=%s", len(ids), status)
        return reports
