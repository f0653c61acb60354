from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from app.models.enrollment import Enrollment
from app.services.errors import AlreadyEnrolledError


class EnrollmentRepo(Protocol):
    async def get(self, learner_id: str, course_id: str) -> Enrollment | None: ...
    async def add(self, enrollment: Enrollment) -> None: ...
    async def complete(self, enrollment: Enrollment) -> bool:
        """Persist an active -> completed transition.

        Returns False, writing nothing, when the stored enrollment is no
        longer active (another request completed it first).
        """
        ...

    async def list_by_learner(self, learner_id: str) -> list[Enrollment]: ...
    async def list_by_courses(self, course_ids: Iterable[str]) -> list[Enrollment]: ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, str], Enrollment] = {}

    async def get(self, learner_id: str, course_id: str) -> Enrollment | None:
        return self._store.get((learner_id, course_id))

    async def add(self, enrollment: Enrollment) -> None:
        key = (enrollment.learner_id, enrollment.course_id)
        if key in self._store:
            raise AlreadyEnrolledError
        self._store[key] = enrollment

    async def complete(self, enrollment: Enrollment) -> bool:
        key = (enrollment.learner_id, enrollment.course_id)
        current = self._store.get(key)
        if current is None:
            raise KeyError("enrollment not found")
        if not current.is_active:
            return False
        self._store[key] = enrollment
        return True

    async def list_by_learner(self, learner_id: str) -> list[Enrollment]:
        found = [e for e in self._store.values() if e.learner_id == learner_id]
        return sorted(found, key=lambda e: e.enrolled_at, reverse=True)

    async def list_by_courses(self, course_ids: Iterable[str]) -> list[Enrollment]:
        wanted = set(course_ids)
        return [e for e in self._store.values() if e.course_id in wanted]
