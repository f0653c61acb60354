"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import CourseModuleRow, CourseRow, SectionRow
from app.models.course import Course, CourseModule, Section
from app.services.errors import CurriculumIntegrityError


class PgCourseRepo:
    """Satisfies the CourseRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: str) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_course(row)

    async def list_published(self) -> list[Course]:
        stmt = (
            select(CourseRow)
            .where(CourseRow.status == "published")
            .order_by(CourseRow.title)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def list_by_instructor(self, instructor_id: str) -> list[Course]:
        stmt = (
            select(CourseRow)
            .where(CourseRow.instructor_id == instructor_id)
            .order_by(CourseRow.title)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def list_modules(self, course_id: str) -> list[CourseModule]:
        stmt = (
            select(CourseModuleRow)
            .where(CourseModuleRow.course_id == course_id)
            .order_by(CourseModuleRow.position)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            CourseModule(
                id=r.id,
                course_id=r.course_id,
                position=r.position,
                title=r.title,
                quiz_id=r.quiz_id,
            )
            for r in rows
        ]

    async def list_sections(self, module_ids: Iterable[str]) -> list[Section]:
        wanted = list(module_ids)
        if not wanted:
            return []
        stmt = (
            select(SectionRow)
            .where(SectionRow.module_id.in_(wanted))
            .order_by(SectionRow.module_id, SectionRow.position)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            Section(id=r.id, module_id=r.module_id, position=r.position, title=r.title)
            for r in rows
        ]

    async def add(self, course: Course) -> None:
        self._session.add(
            CourseRow(
                id=course.id,
                title=course.title,
                status=course.status,
                description=course.description,
                price=course.price,
                category=course.category,
                instructor_id=course.instructor_id,
                instructor_name=course.instructor_name,
                final_exam_id=course.final_exam_id,
            )
        )
        await self._session.flush()

    async def add_module(self, module: CourseModule) -> None:
        course = await self._session.get(CourseRow, module.course_id)
        if course is None:
            raise KeyError("course not found")
        if module.quiz_id is not None and module.quiz_id == course.final_exam_id:
            raise CurriculumIntegrityError(
                f"quiz id {module.quiz_id!r} is already in use"
            )
        row = CourseModuleRow(
            id=module.id,
            course_id=module.course_id,
            position=module.position,
            title=module.title,
            quiz_id=module.quiz_id,
        )
        # uq_course_modules_quiz_id rejects a quiz id used by another module.
        try:
            async with self._session.begin_nested():
                self._session.add(row)
        except IntegrityError as exc:
            raise CurriculumIntegrityError(
                f"quiz id {module.quiz_id!r} is already in use"
            ) from exc

    async def add_section(self, section: Section) -> None:
        self._session.add(
            SectionRow(
                id=section.id,
                module_id=section.module_id,
                position=section.position,
                title=section.title,
            )
        )
        await self._session.flush()


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        status=row.status,
        description=row.description or "",
        price=row.price,
        category=row.category,
        instructor_id=row.instructor_id,
        instructor_name=row.instructor_name,
        final_exam_id=row.final_exam_id,
    )
