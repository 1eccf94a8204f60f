"""Shared application state for one kiosk deployment.

Ownership:
* ``students`` / ``relations`` are written by the check-in/out workflow.
* ``user_by_id`` and missing ``students`` entries are filled by the log feed.
* ``feed`` is written by the log feed only, through ``begin_feed``/``publish_feed``.

The cache dicts are swapped under ``_lock``, never resized in place, so a reader
holding one can iterate it while another request refreshes the cache.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .students.model import Relation, Student
from .users.model import User


@dataclass(frozen=True)
class FeedSnapshot:
    generation: int
    criteria: object
    entries: tuple


@dataclass
class AppState:
    student_by_id: dict[str, Student] = field(default_factory=dict)
    user_by_id: dict[str, User] = field(default_factory=dict)
    relations: list[Relation] = field(default_factory=list)
    feed: Optional[FeedSnapshot] = None
    roster_loaded: bool = False

    _generation: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def replace_roster(self, students: Iterable[Student], relations: Iterable[Relation]) -> None:
        roster = {s.student_id: s for s in students}
        links = list(relations)
        with self._lock:
            self.student_by_id = roster
            self.relations = links
            self.roster_loaded = True

    def remember_students(self, students: Iterable[Student]) -> None:
        with self._lock:
            merged = dict(self.student_by_id)
            merged.update((s.student_id, s) for s in students)
            self.student_by_id = merged

    def remember_users(self, users: Iterable[User]) -> None:
        with self._lock:
            merged = dict(self.user_by_id)
            merged.update((u.user_id, u) for u in users)
            self.user_by_id = merged

    def students(self) -> list[Student]:
        with self._lock:
            return list(self.student_by_id.values())

    def set_checked_in(self, student_ids: Iterable[str], status: bool) -> None:
        with self._lock:
            for i in student_ids:
                cached = self.student_by_id.get(i)
                if cached:
                    cached.checked_in = status

    def child_ids(self, parent_id: str) -> set[str]:
        with self._lock:
            return {r.student_id for r in self.relations if r.parent_id == parent_id}

    def begin_feed(self) -> int:
        """Take a ticket for a feed render; later tickets supersede earlier ones."""

        with self._lock:
            self._generation += 1
            return self._generation

    def publish_feed(self, generation: int, criteria: object, entries: Iterable) -> bool:
        """Store the render result unless a newer render has already started."""

        with self._lock:
            if generation != self._generation:
                return False
            self.feed = FeedSnapshot(generation=generation, criteria=criteria, entries=tuple(entries))
            return True
