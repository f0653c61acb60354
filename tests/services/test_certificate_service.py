from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from app.models.certificate import Certificate
from app.models.progress import SetFinalExamCompleted, VisitSection
from app.repos.certificate_repo import InMemoryCertificateRepo
from app.repos.registry import Repos
from app.services import certificate_service, enrollment_service, progress_service
from app.services.errors import (
    CourseNotFoundError,
    NoProgressError,
    NotEligibleError,
)
from tests.conftest import create_test_course

LEARNER = "learner-1"


def _complete_course(repos: Repos, *, at: int = 500) -> None:
    """Enroll in a final-exam-only course and pass the exam."""
    create_test_course(sections_per_module=(), quiz_modules=())
    asyncio.run(
        enrollment_service.enroll(repos, learner_id=LEARNER, course_id="course-1", now=10)
    )
    asyncio.run(
        progress_service.report_progress(
            repos,
            learner_id=LEARNER,
            course_id="course-1",
            event=SetFinalExamCompleted(True),
            now=at,
        )
    )


def _issue(repos: Repos, now: int = 900) -> tuple[Certificate, bool]:
    return asyncio.run(
        certificate_service.issue_certificate(
            repos,
            learner_id=LEARNER,
            student_name="Amina Learner",
            course_id="course-1",
            now=now,
        )
    )


def test_issue_for_completed_course(repos: Repos) -> None:
    _complete_course(repos, at=500)
    cert, created = _issue(repos)

    assert created is True
    assert cert.student_name == "Amina Learner"
    assert cert.course_name == "Course course-1"
    assert cert.instructor_name == "Omar Haddad"
    assert cert.score == 100
    assert cert.completion_date == 500
    assert cert.issued_at == 900


def test_repeat_request_returns_same_certificate(repos: Repos) -> None:
    _complete_course(repos)
    first, _ = _issue(repos, now=900)
    second, created = _issue(repos, now=1000)

    assert created is False
    assert second.certificate_id == first.certificate_id
    assert second.issued_at == 900


def test_incomplete_course_is_not_eligible(repos: Repos) -> None:
    create_test_course()
    asyncio.run(
        enrollment_service.enroll(repos, learner_id=LEARNER, course_id="course-1", now=10)
    )
    asyncio.run(
        progress_service.report_progress(
            repos,
            learner_id=LEARNER,
            course_id="course-1",
            event=VisitSection("course-1-m0", "course-1-m0-s0"),
        )
    )
    with pytest.raises(NotEligibleError) as exc_info:
        _issue(repos)
    assert exc_info.value.current_progress == 20
    assert asyncio.run(repos.certificates.get_for(LEARNER, "course-1")) is None


def test_no_ledger_raises_no_progress(repos: Repos) -> None:
    create_test_course()
    with pytest.raises(NoProgressError):
        _issue(repos)


def test_course_deleted_after_completion(repos: Repos) -> None:
    _complete_course(repos)
    repos.courses._courses.clear()  # type: ignore[attr-defined]
    with pytest.raises(CourseNotFoundError):
        _issue(repos)


def test_course_without_instructor_name_uses_default(repos: Repos) -> None:
    _complete_course(repos)
    course = asyncio.run(repos.courses.get("course-1"))
    repos.courses._courses["course-1"] = replace(course, instructor_name=None)  # type: ignore[attr-defined]

    cert, _ = _issue(repos)
    assert cert.instructor_name == certificate_service.DEFAULT_INSTRUCTOR_NAME


class _LosingCertificateRepo(InMemoryCertificateRepo):
    """Another request stores its certificate just before ours."""

    def __init__(self, winner: Certificate) -> None:
        super().__init__()
        self._winner = winner

    async def add(self, certificate: Certificate) -> None:
        if not self._by_pair:
            await super().add(self._winner)
        await super().add(certificate)


def test_racing_issue_returns_the_winner(repos: Repos) -> None:
    _complete_course(repos)
    winner = Certificate.new(
        learner_id=LEARNER,
        course_id="course-1",
        student_name="Amina Learner",
        course_name="Course course-1",
        instructor_name="Omar Haddad",
        completion_date=500,
        issued_at=800,
    )
    racing = replace(repos, certificates=_LosingCertificateRepo(winner))  # type: ignore[arg-type]

    cert, created = _issue(racing)
    assert created is False
    assert cert.certificate_id == winner.certificate_id


def test_public_lookup_and_listing(repos: Repos) -> None:
    _complete_course(repos)
    cert, _ = _issue(repos)

    found = asyncio.run(certificate_service.get_public_certificate(repos, cert.certificate_id))
    assert found == cert
    assert asyncio.run(certificate_service.get_public_certificate(repos, "nope")) is None
    assert asyncio.run(certificate_service.list_certificates(repos, LEARNER)) == [cert]
