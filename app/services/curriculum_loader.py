"""Assemble a CurriculumSnapshot for one course.

The progress engine never queries storage.  This loader is the single
place that reads the catalog for a progress request.  Store errors
propagate; a half-loaded curriculum would silently skew percentages.
"""

from __future__ import annotations

import logging

from app.models.course import Course
from app.models.curriculum import CurriculumSnapshot, build_snapshot
from app.repos.course_repo import CourseRepo
from app.services.errors import CourseNotFoundError, CurriculumIntegrityError

logger = logging.getLogger(__name__)


async def load_curriculum(
    courses: CourseRepo, course_id: str
) -> tuple[Course, CurriculumSnapshot]:
    """Load a course and its ordered outline.

    Raises:
        CourseNotFoundError: unknown course.
        CurriculumIntegrityError: the stored outline reuses an item id.
    """
    course = await courses.get(course_id)
    if course is None:
        raise CourseNotFoundError
    modules = await courses.list_modules(course.id)
    sections = await courses.list_sections(m.id for m in modules)
    try:
        snapshot = build_snapshot(course, modules, sections)
    except ValueError as e:
        logger.warning("Unusable curriculum for course=%s: %s", course.id, e)
        raise CurriculumIntegrityError from e
    return course, snapshot
