"""Sample catalog for local development with in-memory repositories."""

from __future__ import annotations

import logging

from app.models.course import Course, CourseModule, Section
from app.repos.course_repo import CourseRepo

logger = logging.getLogger(__name__)

SAMPLE_COURSE_ID = "00000000-0000-0000-0000-000000000001"


async def seed_sample_course(courses: CourseRepo) -> None:
    """Two modules, one quiz and a final exam.  No-op if already seeded."""
    if await courses.get(SAMPLE_COURSE_ID) is not None:
        return

    await courses.add(
        Course(
            id=SAMPLE_COURSE_ID,
            title="Introduction to Arabic Calligraphy",
            status="published",
            description="Tools, posture and the first letters of the Naskh script.",
            category="arts",
            instructor_id="instructor-dev",
            instructor_name="Dev Instructor",
            final_exam_id="final-exam-dev",
        )
    )
    basics = CourseModule.new(
        course_id=SAMPLE_COURSE_ID, position=1, title="Basics", quiz_id="quiz-basics"
    )
    letters = CourseModule.new(course_id=SAMPLE_COURSE_ID, position=2, title="Letters")
    for module in (basics, letters):
        await courses.add_module(module)

    titles = {
        basics.id: ["Choosing a qalam", "Ink and paper"],
        letters.id: ["Alif", "Ba", "Jim"],
    }
    for module_id, section_titles in titles.items():
        for position, title in enumerate(section_titles, start=1):
            await courses.add_section(
                Section.new(module_id=module_id, position=position, title=title)
            )
    logger.info("Seeded sample course id=%s", SAMPLE_COURSE_ID)
