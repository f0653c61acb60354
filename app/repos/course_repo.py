from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from app.models.course import Course, CourseModule, Section
from app.services.errors import CurriculumIntegrityError


class CourseRepo(Protocol):
    async def get(self, course_id: str) -> Course | None: ...
    async def list_published(self) -> list[Course]: ...
    async def list_by_instructor(self, instructor_id: str) -> list[Course]: ...
    async def list_modules(self, course_id: str) -> list[CourseModule]: ...
    async def list_sections(self, module_ids: Iterable[str]) -> list[Section]: ...
    async def add(self, course: Course) -> None: ...
    async def add_module(self, module: CourseModule) -> None: ...
    async def add_section(self, section: Section) -> None: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._courses: dict[str, Course] = {}
        self._modules: dict[str, CourseModule] = {}
        self._sections: dict[str, Section] = {}

    async def get(self, course_id: str) -> Course | None:
        return self._courses.get(course_id)

    async def list_published(self) -> list[Course]:
        return [c for c in self._courses.values() if c.is_published]

    async def list_by_instructor(self, instructor_id: str) -> list[Course]:
        return [c for c in self._courses.values() if c.instructor_id == instructor_id]

    async def list_modules(self, course_id: str) -> list[CourseModule]:
        modules = [m for m in self._modules.values() if m.course_id == course_id]
        return sorted(modules, key=lambda m: m.position)

    async def list_sections(self, module_ids: Iterable[str]) -> list[Section]:
        wanted = set(module_ids)
        sections = [s for s in self._sections.values() if s.module_id in wanted]
        return sorted(sections, key=lambda s: (s.module_id, s.position))

    async def add(self, course: Course) -> None:
        if course.id in self._courses:
            raise ValueError("course already exists")
        self._courses[course.id] = course

    async def add_module(self, module: CourseModule) -> None:
        course = self._courses.get(module.course_id)
        if course is None:
            raise KeyError("course not found")
        if module.quiz_id is not None:
            taken = {m.quiz_id for m in self._modules.values() if m.id != module.id}
            if module.quiz_id == course.final_exam_id or module.quiz_id in taken:
                raise CurriculumIntegrityError(
                    f"quiz id {module.quiz_id!r} is already in use"
                )
        self._modules[module.id] = module

    async def add_section(self, section: Section) -> None:
        if section.module_id not in self._modules:
            raise KeyError("module not found")
        self._sections[section.id] = section
