"""Course catalog and enrollment endpoints.

Enrollment sequence:
  Client -> POST /v1/courses/{course_id}/enroll
  -> course must exist and be published
  -> insert enrollment (unique per learner+course)
  -> insert empty progress ledger
  -> 201 Enrolled
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.api.dependencies import RepoDep, Student, require_user
from app.models.course import Course
from app.models.principal import Principal
from app.services import enrollment_service
from app.services.curriculum_loader import load_curriculum
from app.services.errors import (
    AlreadyEnrolledError,
    CourseNotFoundError,
    CourseNotPublishedError,
    CurriculumIntegrityError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/courses", tags=["courses"])


class CourseOut(BaseModel):
    id: str
    title: str
    description: str
    status: str
    price: int
    category: str | None
    instructor_id: str | None
    instructor_name: str | None

    @classmethod
    def from_course(cls, course: Course) -> CourseOut:
        return cls(
            id=course.id,
            title=course.title,
            description=course.description,
            status=course.status,
            price=course.price,
            category=course.category,
            instructor_id=course.instructor_id,
            instructor_name=course.instructor_name,
        )


class ModuleOutlineOut(BaseModel):
    module_id: str
    section_ids: list[str]
    quiz_id: str | None


class CourseDetailOut(CourseOut):
    final_exam_id: str | None
    total_items: int
    modules: list[ModuleOutlineOut]


class EnrollmentOut(BaseModel):
    id: str
    learner_id: str
    course_id: str
    status: str
    enrolled_at: int
    completed_at: int | None = None


def _can_see_unpublished(principal: Principal, course: Course) -> bool:
    return principal.is_platform_admin() or course.instructor_id == principal.user_id


@router.get("", response_model=list[CourseOut])
async def list_courses(
    _principal: Annotated[Principal, Depends(require_user)],
    repos: RepoDep,
) -> list[CourseOut]:
    return [CourseOut.from_course(c) for c in await repos.courses.list_published()]


@router.get("/{course_id}", response_model=CourseDetailOut)
async def get_course(
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    repos: RepoDep,
) -> CourseDetailOut:
    try:
        course, snapshot = await load_curriculum(repos.courses, course_id)
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="course not found") from None
    except CurriculumIntegrityError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=e.message
        ) from None
    if not course.is_published and not _can_see_unpublished(principal, course):
        raise HTTPException(status_code=404, detail="course not found")

    base = CourseOut.from_course(course)
    return CourseDetailOut(
        **base.model_dump(),
        final_exam_id=snapshot.final_exam_id,
        total_items=snapshot.total_items,
        modules=[
            ModuleOutlineOut(
                module_id=m.module_id,
                section_ids=list(m.section_ids),
                quiz_id=m.quiz_id,
            )
            for m in snapshot.modules
        ],
    )


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    course_id: str,
    principal: Student,
    repos: RepoDep,
) -> EnrollmentOut:
    try:
        enrollment, _ = await enrollment_service.enroll(
            repos, learner_id=principal.user_id, course_id=course_id
        )
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="course not found") from None
    except CourseNotPublishedError as e:
        logger.warning(
            "Enrollment refused user=%s course=%s: not published",
            principal.user_id,
            course_id,
        )
        raise HTTPException(status_code=400, detail=e.message) from None
    except AlreadyEnrolledError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="already enrolled"
        ) from None

    return EnrollmentOut(
        id=enrollment.id,
        learner_id=enrollment.learner_id,
        course_id=enrollment.course_id,
        status=enrollment.status,
        enrolled_at=enrollment.enrolled_at,
        completed_at=enrollment.completed_at,
    )
