from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from app.models.course import Course, CourseModule, Section


@dataclass(frozen=True, slots=True)
class ModuleOutline:
    module_id: str
    section_ids: tuple[str, ...] = ()
    quiz_id: str | None = None


@dataclass(frozen=True, slots=True)
class CurriculumSnapshot:
    """Read-only view of a course's gradable content at one point in time.

    Assembled once per request by the curriculum loader and handed to the
    progress engine.  Section and quiz ids (the final exam included) are
    unique across the whole snapshot.
    """

    course_id: str
    modules: tuple[ModuleOutline, ...] = ()
    final_exam_id: str | None = None

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for item_id in self._item_ids():
            if item_id in seen:
                raise ValueError(f"duplicate curriculum item id {item_id!r}")
            seen.add(item_id)

    def _item_ids(self) -> Iterable[str]:
        for module in self.modules:
            yield from module.section_ids
            if module.quiz_id is not None:
                yield module.quiz_id
        if self.final_exam_id is not None:
            yield self.final_exam_id

    @property
    def all_section_ids(self) -> frozenset[str]:
        return frozenset(s for m in self.modules for s in m.section_ids)

    @property
    def all_quiz_ids(self) -> frozenset[str]:
        """Module quizzes only; the final exam is tracked by its own flag."""
        return frozenset(m.quiz_id for m in self.modules if m.quiz_id is not None)

    @property
    def total_items(self) -> int:
        total = sum(len(m.section_ids) for m in self.modules)
        total += sum(1 for m in self.modules if m.quiz_id is not None)
        if self.final_exam_id is not None:
            total += 1
        return total

    def find_module(self, module_id: str) -> ModuleOutline | None:
        for module in self.modules:
            if module.module_id == module_id:
                return module
        return None


def build_snapshot(
    course: Course,
    modules: Iterable[CourseModule],
    sections: Iterable[Section],
) -> CurriculumSnapshot:
    """Assemble a snapshot from catalog rows, ordered by position."""
    by_module: dict[str, list[Section]] = {}
    for section in sections:
        by_module.setdefault(section.module_id, []).append(section)

    outlines = []
    for module in sorted(modules, key=lambda m: m.position):
        ordered = sorted(by_module.get(module.id, []), key=lambda s: s.position)
        outlines.append(
            ModuleOutline(
                module_id=module.id,
                section_ids=tuple(s.id for s in ordered),
                quiz_id=module.quiz_id,
            )
        )

    return CurriculumSnapshot(
        course_id=course.id,
        modules=tuple(outlines),
        final_exam_id=course.final_exam_id,
    )
