"""Instructor dashboard and administrative overrides.

Instructors see aggregates for the courses they own.  The final exam
reset is the only path that can clear a learner's final exam flag; it
is open to the owning instructor and to platform admins.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.api.dependencies import RepoDep, require_any_role, require_role
from app.api.progress import LedgerOut, ProgressReportOut, raise_for_progress_error
from app.models.principal import Principal
from app.services import progress_service, statistics_service
from app.services.errors import LearningError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/instructor", tags=["instructor"])

Instructor = Annotated[Principal, Depends(require_role("instructor"))]
InstructorOrAdmin = Annotated[
    Principal, Depends(require_any_role({"instructor", "admin"}))
]


class InstructorStatisticsOut(BaseModel):
    total_courses: int
    published_courses: int
    draft_courses: int
    total_students: int
    total_enrollments: int


class LearnerSummaryOut(BaseModel):
    learner_id: str
    enrolled_courses: int
    average_progress: int
    last_active: int | None


@router.get("/statistics", response_model=InstructorStatisticsOut)
async def statistics(principal: Instructor, repos: RepoDep) -> InstructorStatisticsOut:
    stats = await statistics_service.instructor_statistics(repos, principal.user_id)
    return InstructorStatisticsOut(
        total_courses=stats.total_courses,
        published_courses=stats.published_courses,
        draft_courses=stats.draft_courses,
        total_students=stats.total_students,
        total_enrollments=stats.total_enrollments,
    )


@router.get("/students", response_model=list[LearnerSummaryOut])
async def students(
    principal: Instructor, repos: RepoDep, course_id: str | None = None
) -> list[LearnerSummaryOut]:
    summaries = await statistics_service.instructor_students(
        repos, principal.user_id, course_id=course_id
    )
    return [
        LearnerSummaryOut(
            learner_id=s.learner_id,
            enrolled_courses=s.enrolled_courses,
            average_progress=s.average_progress,
            last_active=s.last_active,
        )
        for s in summaries
    ]


@router.post(
    "/courses/{course_id}/learners/{learner_id}/final-exam/reset",
    response_model=ProgressReportOut,
)
async def reset_final_exam(
    course_id: str,
    learner_id: str,
    principal: InstructorOrAdmin,
    repos: RepoDep,
) -> ProgressReportOut:
    course = await repos.courses.get(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="course not found")
    if not principal.is_platform_admin() and course.instructor_id != principal.user_id:
        logger.warning(
            "Access denied: user=%s does not own course=%s",
            principal.user_id,
            course_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )

    try:
        result = await progress_service.reset_final_exam(
            repos, learner_id=learner_id, course_id=course_id
        )
    except LearningError as e:
        logger.warning(
            "Final exam reset failed actor=%s learner=%s course=%s code=%s",
            principal.user_id,
            learner_id,
            course_id,
            e.code,
        )
        raise_for_progress_error(e)

    logger.info(
        "Final exam reset by actor=%s learner=%s course=%s",
        principal.user_id,
        learner_id,
        course_id,
    )
    out = LedgerOut.from_ledger(result.ledger)
    return ProgressReportOut(**out.model_dump(), enrollment_status=result.enrollment.status)
