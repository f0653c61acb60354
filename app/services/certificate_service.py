"""Certificate issuance and lookup.

At most one certificate exists per (learner, course).  A repeat request
returns the stored certificate unchanged, and the store's uniqueness
constraint settles two requests racing to create the first one.
"""

from __future__ import annotations

import logging

from app.core.clock import now_ts
from app.core.metrics import CERTIFICATE_REQUESTS
from app.models.certificate import Certificate
from app.repos.registry import Repos
from app.services.completion import is_eligible
from app.services.errors import (
    CourseNotFoundError,
    DuplicateCertificateError,
    NoProgressError,
    NotEligibleError,
)

logger = logging.getLogger(__name__)

# Shown when a course has no named instructor.
DEFAULT_INSTRUCTOR_NAME = "Dar Al-Ilm"


async def issue_certificate(
    repos: Repos,
    *,
    learner_id: str,
    student_name: str,
    course_id: str,
    now: int | None = None,
) -> tuple[Certificate, bool]:
    """Return (certificate, created).

    Raises:
        NoProgressError: the learner never started the course.
        NotEligibleError: progress is below 100.
        CourseNotFoundError: the course is gone from the catalog.
    """
    existing = await repos.certificates.get_for(learner_id, course_id)
    if existing is not None:
        CERTIFICATE_REQUESTS.labels(outcome="existing").inc()
        return existing, False

    ledger = await repos.ledgers.get(learner_id, course_id)
    if ledger is None:
        raise NoProgressError
    if not is_eligible(ledger):
        CERTIFICATE_REQUESTS.labels(outcome="ineligible").inc()
        logger.info(
            "Certificate refused learner=%s course=%s progress=%d",
            learner_id,
            course_id,
            ledger.overall_progress,
        )
        raise NotEligibleError(ledger.overall_progress)

    course = await repos.courses.get(course_id)
    if course is None:
        raise CourseNotFoundError

    if now is None:
        now = now_ts()
    enrollment = await repos.enrollments.get(learner_id, course_id)
    completion_date = (
        (enrollment.completed_at if enrollment is not None else None)
        or ledger.last_accessed_at
        or now
    )

    certificate = Certificate.new(
        learner_id=learner_id,
        course_id=course_id,
        student_name=student_name,
        course_name=course.title,
        instructor_name=course.instructor_name or DEFAULT_INSTRUCTOR_NAME,
        completion_date=completion_date,
        issued_at=now,
    )
    try:
        await repos.certificates.add(certificate)
    except DuplicateCertificateError:
        winner = await repos.certificates.get_for(learner_id, course_id)
        if winner is None:
            raise
        CERTIFICATE_REQUESTS.labels(outcome="existing").inc()
        return winner, False

    CERTIFICATE_REQUESTS.labels(outcome="issued").inc()
    logger.info(
        "Certificate issued learner=%s course=%s certificate_id=%s",
        learner_id,
        course_id,
        certificate.certificate_id,
    )
    return certificate, True


async def list_certificates(repos: Repos, learner_id: str) -> list[Certificate]:
    return await repos.certificates.list_by_learner(learner_id)


async def get_public_certificate(repos: Repos, certificate_id: str) -> Certificate | None:
    return await repos.certificates.get_by_certificate_id(certificate_id)
