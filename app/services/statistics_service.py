"""Read-only dashboard aggregates for learners and instructors."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from app.repos.registry import Repos


@dataclass(frozen=True, slots=True)
class LearnerStatistics:
    total_enrollments: int
    active_enrollments: int
    completed_courses: int
    courses_in_progress: int
    average_progress: int


@dataclass(frozen=True, slots=True)
class InstructorStatistics:
    total_courses: int
    published_courses: int
    draft_courses: int
    total_students: int
    total_enrollments: int


@dataclass(frozen=True, slots=True)
class LearnerSummary:
    learner_id: str
    enrolled_courses: int
    average_progress: int
    last_active: int | None


def _mean(values: Sequence[int]) -> int:
    if not values:
        return 0
    mean = Decimal(sum(values)) / len(values)
    return int(mean.quantize(Decimal(1), rounding=ROUND_HALF_UP))


async def learner_statistics(repos: Repos, learner_id: str) -> LearnerStatistics:
    enrollments = await repos.enrollments.list_by_learner(learner_id)
    ledgers = await repos.ledgers.list_by_learner(learner_id)
    progress = [lg.overall_progress for lg in ledgers]
    return LearnerStatistics(
        total_enrollments=len(enrollments),
        active_enrollments=sum(1 for e in enrollments if e.status == "active"),
        completed_courses=sum(1 for e in enrollments if e.status == "completed"),
        courses_in_progress=sum(1 for p in progress if 0 < p < 100),
        average_progress=_mean(progress),
    )


async def instructor_statistics(repos: Repos, instructor_id: str) -> InstructorStatistics:
    courses = await repos.courses.list_by_instructor(instructor_id)
    published = sum(1 for c in courses if c.is_published)
    enrollments = await repos.enrollments.list_by_courses(c.id for c in courses)
    return InstructorStatistics(
        total_courses=len(courses),
        published_courses=published,
        draft_courses=len(courses) - published,
        total_students=len({e.learner_id for e in enrollments}),
        total_enrollments=len(enrollments),
    )


async def instructor_students(
    repos: Repos, instructor_id: str, *, course_id: str | None = None
) -> list[LearnerSummary]:
    """Learners enrolled in the instructor's courses, ordered by learner id.

    course_id narrows the listing to one of the instructor's courses; a
    course the instructor does not own yields an empty list.
    """
    course_ids = {c.id for c in await repos.courses.list_by_instructor(instructor_id)}
    if course_id is not None:
        course_ids &= {course_id}
    enrollments = await repos.enrollments.list_by_courses(course_ids)

    by_learner: dict[str, list[str]] = {}
    for e in enrollments:
        by_learner.setdefault(e.learner_id, []).append(e.course_id)

    summaries = []
    for learner_id in sorted(by_learner):
        progress = []
        for cid in by_learner[learner_id]:
            ledger = await repos.ledgers.get(learner_id, cid)
            progress.append(ledger.overall_progress if ledger is not None else 0)
        # Most recent activity in any course, not just this instructor's.
        recent = await repos.ledgers.list_by_learner(learner_id)
        summaries.append(
            LearnerSummary(
                learner_id=learner_id,
                enrolled_courses=len(progress),
                average_progress=_mean(progress),
                last_active=recent[0].last_accessed_at if recent else None,
            )
        )
    return summaries
