"""PostgreSQL implementation of CertificateRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import CertificateRow
from app.models.certificate import Certificate
from app.services.errors import DuplicateCertificateError


class PgCertificateRepo:
    """Satisfies the CertificateRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for(self, learner_id: str, course_id: str) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.learner_id == learner_id,
            CertificateRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.certificate_id == certificate_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def add(self, certificate: Certificate) -> None:
        row = CertificateRow(
            id=certificate.id,
            certificate_id=certificate.certificate_id,
            learner_id=certificate.learner_id,
            course_id=certificate.course_id,
            student_name=certificate.student_name,
            course_name=certificate.course_name,
            instructor_name=certificate.instructor_name,
            score=certificate.score,
            completion_date=certificate.completion_date,
            issued_at=certificate.issued_at,
        )
        # Savepoint keeps the outer transaction usable after a unique
        # violation so the caller can read back the winning row.
        try:
            async with self._session.begin_nested():
                self._session.add(row)
        except IntegrityError as exc:
            raise DuplicateCertificateError from exc

    async def list_by_learner(self, learner_id: str) -> list[Certificate]:
        stmt = (
            select(CertificateRow)
            .where(CertificateRow.learner_id == learner_id)
            .order_by(CertificateRow.issued_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]


def _row_to_certificate(row: CertificateRow) -> Certificate:
    return Certificate(
        id=row.id,
        certificate_id=row.certificate_id,
        learner_id=row.learner_id,
        course_id=row.course_id,
        student_name=row.student_name,
        course_name=row.course_name,
        instructor_name=row.instructor_name,
        score=row.score,
        completion_date=row.completion_date,
        issued_at=row.issued_at,
    )
