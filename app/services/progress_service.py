"""Request-scoped progress cycle.

report_progress runs one event through:
  load enrollment -> load (or create) ledger -> load curriculum
  -> apply_event -> compare-and-swap save -> enrollment completion
  -> commit -> cache invalidation

A version conflict on save reloads the ledger and re-applies the event,
up to SETTINGS.progress_max_attempts times.  Events are idempotent set
inserts, so re-applying on a fresher ledger never double counts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.clock import now_ts
from app.core.config import SETTINGS
from app.core.metrics import ENROLLMENT_COMPLETIONS, LEDGER_CONFLICTS, PROGRESS_EVENTS
from app.models.course import Course
from app.models.curriculum import CurriculumSnapshot
from app.models.enrollment import Enrollment
from app.models.progress import (
    ProgressEvent,
    ProgressLedger,
    SetFinalExamCompleted,
    event_type,
)
from app.repos.ledger_repo import LedgerRepo
from app.repos.registry import Repos
from app.services.cache import cache_service, progress_key
from app.services.completion import on_ledger_updated
from app.services.curriculum_loader import load_curriculum
from app.services.errors import (
    ConcurrentModificationError,
    InvalidReferenceError,
    NoProgressError,
    NotEnrolledError,
)
from app.services.progress_engine import ModuleProgress, apply_event, summarize_modules

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressResult:
    ledger: ProgressLedger
    enrollment: Enrollment
    course_completed: bool


@dataclass(frozen=True, slots=True)
class ProgressView:
    course: Course
    ledger: ProgressLedger
    enrollment: Enrollment | None
    modules: list[ModuleProgress]


async def _require_enrollment(repos: Repos, learner_id: str, course_id: str) -> Enrollment:
    enrollment = await repos.enrollments.get(learner_id, course_id)
    if enrollment is None or enrollment.is_cancelled:
        raise NotEnrolledError
    return enrollment


async def _load_or_create_ledger(
    ledgers: LedgerRepo, enrollment: Enrollment, now: int
) -> ProgressLedger:
    ledger = await ledgers.get(enrollment.learner_id, enrollment.course_id)
    if ledger is not None:
        return ledger

    # Enrollments created before ledgers were written at enroll time.
    ledger = ProgressLedger.new(
        learner_id=enrollment.learner_id,
        course_id=enrollment.course_id,
        enrollment_id=enrollment.id,
        created_at=now,
    )
    try:
        await ledgers.add(ledger)
    except ConcurrentModificationError:
        existing = await ledgers.get(enrollment.learner_id, enrollment.course_id)
        if existing is None:
            raise
        return existing
    logger.info(
        "Created missing progress ledger learner=%s course=%s",
        enrollment.learner_id,
        enrollment.course_id,
    )
    return ledger


async def _apply_with_retry(
    ledgers: LedgerRepo,
    enrollment: Enrollment,
    snapshot: CurriculumSnapshot,
    event: ProgressEvent,
    now: int,
    max_attempts: int,
) -> tuple[ProgressLedger, bool]:
    label = event_type(event)
    for attempt in range(1, max_attempts + 1):
        ledger = await _load_or_create_ledger(ledgers, enrollment, now)
        try:
            updated, complete = apply_event(ledger, snapshot, event, now=now)
        except InvalidReferenceError as e:
            PROGRESS_EVENTS.labels(event_type=label, result="invalid_reference").inc()
            logger.warning(
                "Rejected progress event learner=%s course=%s: %s",
                enrollment.learner_id,
                enrollment.course_id,
                e.message,
            )
            raise

        try:
            saved = await ledgers.save(updated, expected_version=ledger.version)
        except ConcurrentModificationError:
            LEDGER_CONFLICTS.inc()
            logger.info(
                "Ledger version conflict learner=%s course=%s attempt=%d/%d",
                enrollment.learner_id,
                enrollment.course_id,
                attempt,
                max_attempts,
            )
            continue
        return saved, complete

    PROGRESS_EVENTS.labels(event_type=label, result="conflict").inc()
    logger.warning(
        "Giving up after %d conflicting saves learner=%s course=%s",
        max_attempts,
        enrollment.learner_id,
        enrollment.course_id,
    )
    raise ConcurrentModificationError


async def report_progress(
    repos: Repos,
    *,
    learner_id: str,
    course_id: str,
    event: ProgressEvent,
    now: int | None = None,
    max_attempts: int | None = None,
) -> ProgressResult:
    """Apply one progress event for a learner and persist the result.

    Raises:
        NotEnrolledError: no enrollment, or the enrollment was cancelled.
        CourseNotFoundError: the course is gone from the catalog.
        InvalidReferenceError: the event names content outside the module.
        ConcurrentModificationError: every save attempt lost a race.
    """
    if now is None:
        now = now_ts()
    attempts = max_attempts if max_attempts is not None else SETTINGS.progress_max_attempts

    try:
        enrollment = await _require_enrollment(repos, learner_id, course_id)
    except NotEnrolledError:
        PROGRESS_EVENTS.labels(event_type=event_type(event), result="not_enrolled").inc()
        raise
    _, snapshot = await load_curriculum(repos.courses, course_id)

    ledger, complete = await _apply_with_retry(
        repos.ledgers, enrollment, snapshot, event, now, attempts
    )
    PROGRESS_EVENTS.labels(event_type=event_type(event), result="applied").inc()

    # Re-read so a completion written by a concurrent request is seen.
    current = await repos.enrollments.get(learner_id, course_id) or enrollment
    updated = on_ledger_updated(current, ledger, now=now)
    if updated is not current:
        if await repos.enrollments.complete(updated):
            ENROLLMENT_COMPLETIONS.inc()
            logger.info("Enrollment completed learner=%s course=%s", learner_id, course_id)
        else:
            updated = await repos.enrollments.get(learner_id, course_id) or updated

    await repos.commit()
    await cache_service.delete(progress_key(learner_id, course_id))
    return ProgressResult(ledger=ledger, enrollment=updated, course_completed=complete)


async def reset_final_exam(
    repos: Repos, *, learner_id: str, course_id: str, now: int | None = None
) -> ProgressResult:
    """Administrative override: clear a learner's final exam flag.

    Goes through the same cycle as a learner report.  A completed
    enrollment stays completed; the transition is one-way.
    """
    return await report_progress(
        repos,
        learner_id=learner_id,
        course_id=course_id,
        event=SetFinalExamCompleted(completed=False),
        now=now,
    )


async def get_progress_view(
    repos: Repos, *, learner_id: str, course_id: str
) -> ProgressView:
    """Ledger plus per-module completion for one course.

    Raises NoProgressError when the learner has no ledger for the course.
    """
    ledger = await repos.ledgers.get(learner_id, course_id)
    if ledger is None:
        raise NoProgressError
    course, snapshot = await load_curriculum(repos.courses, course_id)
    enrollment = await repos.enrollments.get(learner_id, course_id)
    return ProgressView(
        course=course,
        ledger=ledger,
        enrollment=enrollment,
        modules=summarize_modules(ledger, snapshot),
    )


async def list_progress(
    repos: Repos, learner_id: str
) -> list[tuple[ProgressLedger, Course | None]]:
    """All of a learner's ledgers, most recently accessed first."""
    ledgers = await repos.ledgers.list_by_learner(learner_id)
    return [(lg, await repos.courses.get(lg.course_id)) for lg in ledgers]
