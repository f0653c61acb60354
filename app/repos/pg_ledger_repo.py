"""PostgreSQL implementation of LedgerRepo.

save() is a compare-and-swap on the version column: the UPDATE only
matches when the stored version equals the one the caller loaded, so
two writers racing on the same (learner, course) cannot both succeed.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import ProgressLedgerRow
from app.models.progress import (
    Location,
    ProgressLedger,
    QuizLocation,
    SectionLocation,
)
from app.services.errors import ConcurrentModificationError


class PgLedgerRepo:
    """Satisfies the LedgerRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, learner_id: str, course_id: str) -> ProgressLedger | None:
        stmt = (
            select(ProgressLedgerRow)
            .where(
                ProgressLedgerRow.learner_id == learner_id,
                ProgressLedgerRow.course_id == course_id,
            )
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_ledger(row)

    async def add(self, ledger: ProgressLedger) -> None:
        row = ProgressLedgerRow(
            learner_id=ledger.learner_id,
            course_id=ledger.course_id,
            enrollment_id=ledger.enrollment_id,
            version=ledger.version,
            **_ledger_values(ledger),
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
        except IntegrityError as exc:
            raise ConcurrentModificationError("progress ledger already exists") from exc

    async def save(
        self, ledger: ProgressLedger, *, expected_version: int
    ) -> ProgressLedger:
        stmt = (
            update(ProgressLedgerRow)
            .where(
                ProgressLedgerRow.learner_id == ledger.learner_id,
                ProgressLedgerRow.course_id == ledger.course_id,
                ProgressLedgerRow.version == expected_version,
            )
            .values(version=expected_version + 1, **_ledger_values(ledger))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModificationError
        return replace(ledger, version=expected_version + 1)

    async def list_by_learner(self, learner_id: str) -> list[ProgressLedger]:
        stmt = (
            select(ProgressLedgerRow)
            .where(ProgressLedgerRow.learner_id == learner_id)
            .order_by(ProgressLedgerRow.last_accessed_at.desc().nulls_last())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_ledger(r) for r in rows]


def _ledger_values(ledger: ProgressLedger) -> dict[str, Any]:
    loc = ledger.current_location
    return {
        "completed_sections": sorted(ledger.completed_sections),
        "completed_quizzes": sorted(ledger.completed_quizzes),
        "completed_final_exam": ledger.completed_final_exam,
        "location_module_id": loc.module_id if loc is not None else None,
        "location_section_id": (
            loc.section_id if isinstance(loc, SectionLocation) else None
        ),
        "location_quiz_id": loc.quiz_id if isinstance(loc, QuizLocation) else None,
        "overall_progress": ledger.overall_progress,
        "last_accessed_at": ledger.last_accessed_at,
    }


def _row_to_location(row: ProgressLedgerRow) -> Location | None:
    if row.location_module_id is None:
        return None
    if row.location_section_id is not None:
        return SectionLocation(
            module_id=row.location_module_id, section_id=row.location_section_id
        )
    if row.location_quiz_id is not None:
        return QuizLocation(
            module_id=row.location_module_id, quiz_id=row.location_quiz_id
        )
    return None


def _row_to_ledger(row: ProgressLedgerRow) -> ProgressLedger:
    return ProgressLedger(
        learner_id=row.learner_id,
        course_id=row.course_id,
        enrollment_id=row.enrollment_id,
        completed_sections=frozenset(row.completed_sections or ()),
        completed_quizzes=frozenset(row.completed_quizzes or ()),
        completed_final_exam=row.completed_final_exam,
        current_location=_row_to_location(row),
        overall_progress=row.overall_progress,
        last_accessed_at=row.last_accessed_at,
        version=row.version,
    )
