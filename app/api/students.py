"""Learner dashboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from app.api.courses import CourseOut, EnrollmentOut
from app.api.dependencies import RepoDep, Student
from app.services import enrollment_service, statistics_service

router = APIRouter(prefix="/v1/students/me", tags=["students"])


class ProgressSummaryOut(BaseModel):
    overall_progress: int
    completed_sections: int
    completed_quizzes: int
    completed_final_exam: bool
    last_accessed_at: int | None


class LearnerCourseOut(BaseModel):
    enrollment: EnrollmentOut
    course: CourseOut | None
    progress: ProgressSummaryOut | None


class LearnerStatisticsOut(BaseModel):
    total_enrollments: int
    active_enrollments: int
    completed_courses: int
    courses_in_progress: int
    average_progress: int


@router.get("/courses", response_model=list[LearnerCourseOut])
async def my_courses(principal: Student, repos: RepoDep) -> list[LearnerCourseOut]:
    items = await enrollment_service.list_learner_courses(repos, principal.user_id)
    out = []
    for item in items:
        e, ledger = item.enrollment, item.ledger
        out.append(
            LearnerCourseOut(
                enrollment=EnrollmentOut(
                    id=e.id,
                    learner_id=e.learner_id,
                    course_id=e.course_id,
                    status=e.status,
                    enrolled_at=e.enrolled_at,
                    completed_at=e.completed_at,
                ),
                course=CourseOut.from_course(item.course) if item.course else None,
                progress=(
                    ProgressSummaryOut(
                        overall_progress=ledger.overall_progress,
                        completed_sections=len(ledger.completed_sections),
                        completed_quizzes=len(ledger.completed_quizzes),
                        completed_final_exam=ledger.completed_final_exam,
                        last_accessed_at=ledger.last_accessed_at,
                    )
                    if ledger is not None
                    else None
                ),
            )
        )
    return out


@router.get("/statistics", response_model=LearnerStatisticsOut)
async def my_statistics(principal: Student, repos: RepoDep) -> LearnerStatisticsOut:
    stats = await statistics_service.learner_statistics(repos, principal.user_id)
    return LearnerStatisticsOut(
        total_enrollments=stats.total_enrollments,
        active_enrollments=stats.active_enrollments,
        completed_courses=stats.completed_courses,
        courses_in_progress=stats.courses_in_progress,
        average_progress=stats.average_progress,
    )
