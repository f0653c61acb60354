"""PostgreSQL implementation of EnrollmentRepo."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import EnrollmentRow
from app.models.enrollment import Enrollment
from app.services.errors import AlreadyEnrolledError


class PgEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, learner_id: str, course_id: str) -> Enrollment | None:
        stmt = (
            select(EnrollmentRow)
            .where(
                EnrollmentRow.learner_id == learner_id,
                EnrollmentRow.course_id == course_id,
            )
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_enrollment(row)

    async def add(self, enrollment: Enrollment) -> None:
        row = EnrollmentRow(
            id=enrollment.id,
            learner_id=enrollment.learner_id,
            course_id=enrollment.course_id,
            enrolled_at=enrollment.enrolled_at,
            status=enrollment.status,
            completed_at=enrollment.completed_at,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
        except IntegrityError as exc:
            # unique (learner_id, course_id)
            raise AlreadyEnrolledError from exc

    async def complete(self, enrollment: Enrollment) -> bool:
        stmt = (
            update(EnrollmentRow)
            .where(
                EnrollmentRow.id == enrollment.id,
                EnrollmentRow.status == "active",
            )
            .values(status=enrollment.status, completed_at=enrollment.completed_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_by_learner(self, learner_id: str) -> list[Enrollment]:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.learner_id == learner_id)
            .order_by(EnrollmentRow.enrolled_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]

    async def list_by_courses(self, course_ids: Iterable[str]) -> list[Enrollment]:
        wanted = list(course_ids)
        if not wanted:
            return []
        stmt = select(EnrollmentRow).where(EnrollmentRow.course_id.in_(wanted))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        learner_id=row.learner_id,
        course_id=row.course_id,
        enrolled_at=row.enrolled_at,
        status=row.status,
        completed_at=row.completed_at,
    )
