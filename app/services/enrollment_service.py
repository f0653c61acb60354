from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.clock import now_ts
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.progress import ProgressLedger
from app.repos.registry import Repos
from app.services.cache import cache_service, progress_key
from app.services.errors import CourseNotFoundError, CourseNotPublishedError

logger = logging.getLogger(__name__)


async def enroll(
    repos: Repos, *, learner_id: str, course_id: str, now: int | None = None
) -> tuple[Enrollment, ProgressLedger]:
    """Enroll a learner and open an empty progress ledger.

    Raises:
        CourseNotFoundError: unknown course.
        CourseNotPublishedError: course is draft or archived.
        AlreadyEnrolledError: the learner already has an enrollment.
    """
    course = await repos.courses.get(course_id)
    if course is None:
        raise CourseNotFoundError
    if not course.is_published:
        raise CourseNotPublishedError

    if now is None:
        now = now_ts()

    enrollment = Enrollment.new(learner_id=learner_id, course_id=course_id, enrolled_at=now)
    await repos.enrollments.add(enrollment)

    ledger = ProgressLedger.new(
        learner_id=learner_id,
        course_id=course_id,
        enrollment_id=enrollment.id,
        created_at=now,
    )
    await repos.ledgers.add(ledger)

    await repos.commit()
    await cache_service.delete(progress_key(learner_id, course_id))
    logger.info("Enrolled learner=%s course=%s", learner_id, course_id)
    return enrollment, ledger


@dataclass(frozen=True, slots=True)
class LearnerCourse:
    enrollment: Enrollment
    course: Course | None
    ledger: ProgressLedger | None


async def list_learner_courses(repos: Repos, learner_id: str) -> list[LearnerCourse]:
    """Enrollments with their course and ledger, newest enrollment first."""
    result = []
    for enrollment in await repos.enrollments.list_by_learner(learner_id):
        result.append(
            LearnerCourse(
                enrollment=enrollment,
                course=await repos.courses.get(enrollment.course_id),
                ledger=await repos.ledgers.get(learner_id, enrollment.course_id),
            )
        )
    return result
