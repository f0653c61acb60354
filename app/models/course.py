from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Course:
    id: str
    title: str
    status: str = "draft"  # draft|published|archived
    description: str = ""
    price: int = 0
    category: str | None = None
    instructor_id: str | None = None
    instructor_name: str | None = None
    final_exam_id: str | None = None

    @property
    def is_published(self) -> bool:
        return self.status == "published"


@dataclass(frozen=True, slots=True)
class CourseModule:
    id: str
    course_id: str
    position: int
    title: str
    quiz_id: str | None = None

    @staticmethod
    def new(
        *, course_id: str, position: int, title: str, quiz_id: str | None = None
    ) -> CourseModule:
        return CourseModule(
            id=str(uuid4()),
            course_id=course_id,
            position=position,
            title=title,
            quiz_id=quiz_id,
        )


@dataclass(frozen=True, slots=True)
class Section:
    id: str
    module_id: str
    position: int
    title: str

    @staticmethod
    def new(*, module_id: str, position: int, title: str) -> Section:
        return Section(id=str(uuid4()), module_id=module_id, position=position, title=title)
