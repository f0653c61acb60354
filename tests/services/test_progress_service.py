from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest
from prometheus_client import REGISTRY

from app.models.progress import (
    ProgressLedger,
    SetFinalExamCompleted,
    VisitQuiz,
    VisitSection,
)
from app.repos.ledger_repo import InMemoryLedgerRepo
from app.repos.registry import Repos
from app.services import enrollment_service, progress_service
from app.services.cache import cache_service, progress_key
from app.services.errors import (
    ConcurrentModificationError,
    CourseNotFoundError,
    InvalidReferenceError,
    NoProgressError,
    NotEnrolledError,
)
from tests.conftest import create_test_course

LEARNER = "learner-1"


def _sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def _enroll(repos: Repos, course_id: str = "course-1") -> None:
    asyncio.run(
        enrollment_service.enroll(repos, learner_id=LEARNER, course_id=course_id, now=10)
    )


def _report(repos: Repos, event, course_id: str = "course-1", **kwargs):
    return asyncio.run(
        progress_service.report_progress(
            repos, learner_id=LEARNER, course_id=course_id, event=event, **kwargs
        )
    )


def test_report_updates_ledger_and_bumps_version(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)

    result = _report(repos, VisitSection("course-1-m0", "course-1-m0-s0"), now=50)
    assert result.ledger.overall_progress == 20
    assert result.ledger.version == 1
    assert result.ledger.last_accessed_at == 50
    assert result.course_completed is False
    assert result.enrollment.status == "active"


def test_not_enrolled_learner_is_rejected(repos: Repos) -> None:
    create_test_course()
    with pytest.raises(NotEnrolledError):
        _report(repos, VisitSection("course-1-m0", "course-1-m0-s0"))


def test_cancelled_enrollment_is_treated_as_not_enrolled(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    stored = asyncio.run(repos.enrollments.get(LEARNER, "course-1"))
    repos.enrollments._store[(LEARNER, "course-1")] = replace(  # type: ignore[attr-defined]
        stored, status="cancelled"
    )
    with pytest.raises(NotEnrolledError):
        _report(repos, VisitSection("course-1-m0", "course-1-m0-s0"))


def test_invalid_reference_does_not_persist(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    before = _sample(
        "progress_events_total",
        {"event_type": "visit_section", "result": "invalid_reference"},
    )
    with pytest.raises(InvalidReferenceError):
        _report(repos, VisitSection("course-1-m1", "course-1-m0-s0"))

    ledger = asyncio.run(repos.ledgers.get(LEARNER, "course-1"))
    assert ledger is not None
    assert ledger.version == 0
    assert ledger.completed_sections == frozenset()
    after = _sample(
        "progress_events_total",
        {"event_type": "visit_section", "result": "invalid_reference"},
    )
    assert after - before == 1


def test_missing_ledger_is_created_on_first_report(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    repos.ledgers._store.clear()  # type: ignore[attr-defined]

    result = _report(repos, VisitQuiz("course-1-m0", "course-1-m0-quiz"))
    assert result.ledger.completed_quizzes == {"course-1-m0-quiz"}
    assert result.ledger.enrollment_id == result.enrollment.id


def test_deleted_course_raises_not_found(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    repos.courses._courses.clear()  # type: ignore[attr-defined]
    with pytest.raises(CourseNotFoundError):
        _report(repos, VisitSection("course-1-m0", "course-1-m0-s0"))


def test_completing_course_flips_enrollment_once(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    before = _sample("enrollment_completions_total")

    for event in (
        VisitSection("course-1-m0", "course-1-m0-s0"),
        VisitSection("course-1-m0", "course-1-m0-s1"),
        VisitQuiz("course-1-m0", "course-1-m0-quiz"),
        VisitSection("course-1-m1", "course-1-m1-s0"),
    ):
        _report(repos, event, now=100)
    result = _report(repos, SetFinalExamCompleted(True), now=200)
    assert result.course_completed is True
    assert result.enrollment.status == "completed"
    assert result.enrollment.completed_at == 200

    # A repeat visit at 100% keeps the original completion time.
    again = _report(repos, VisitSection("course-1-m0", "course-1-m0-s0"), now=300)
    assert again.enrollment.completed_at == 200
    assert _sample("enrollment_completions_total") - before == 1


def test_final_exam_reset_keeps_enrollment_completed(repos: Repos) -> None:
    create_test_course(sections_per_module=(), quiz_modules=())
    _enroll(repos)
    done = _report(repos, SetFinalExamCompleted(True), now=100)
    assert done.ledger.overall_progress == 100

    reset = asyncio.run(
        progress_service.reset_final_exam(
            repos, learner_id=LEARNER, course_id="course-1", now=150
        )
    )
    assert reset.ledger.completed_final_exam is False
    assert reset.ledger.overall_progress == 0
    assert reset.enrollment.status == "completed"
    assert reset.enrollment.completed_at == 100


def test_report_invalidates_cached_view(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    key = progress_key(LEARNER, "course-1")
    asyncio.run(cache_service.set(key, "{}", 300))

    _report(repos, VisitSection("course-1-m0", "course-1-m0-s0"))
    assert asyncio.run(cache_service.get(key)) is None


# ---- optimistic concurrency ----


class _RacingLedgerRepo(InMemoryLedgerRepo):
    """Simulates another writer landing between each load and save."""

    def __init__(self, inner: InMemoryLedgerRepo, races: int) -> None:
        super().__init__()
        self._store = inner._store
        self._races = races

    async def save(
        self, ledger: ProgressLedger, *, expected_version: int
    ) -> ProgressLedger:
        if self._races > 0:
            self._races -= 1
            key = (ledger.learner_id, ledger.course_id)
            current = self._store[key]
            # the competing writer completes the quiz
            self._store[key] = replace(
                current,
                completed_quizzes=current.completed_quizzes | {"course-1-m0-quiz"},
                version=current.version + 1,
            )
        return await super().save(ledger, expected_version=expected_version)


def _racing(repos: Repos, races: int) -> Repos:
    return replace(repos, ledgers=_RacingLedgerRepo(repos.ledgers, races))  # type: ignore[arg-type]


def test_conflict_is_retried_on_fresh_ledger(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    before = _sample("progress_ledger_conflicts_total")

    result = _report(
        _racing(repos, races=1),
        VisitSection("course-1-m0", "course-1-m0-s0"),
        max_attempts=3,
    )
    # Both the competing write and ours survive.
    assert result.ledger.completed_quizzes == {"course-1-m0-quiz"}
    assert result.ledger.completed_sections == {"course-1-m0-s0"}
    assert result.ledger.overall_progress == 40
    assert result.ledger.version == 2
    assert _sample("progress_ledger_conflicts_total") - before == 1


def test_conflict_gives_up_after_max_attempts(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    with pytest.raises(ConcurrentModificationError):
        _report(
            _racing(repos, races=5),
            VisitSection("course-1-m0", "course-1-m0-s0"),
            max_attempts=2,
        )

    ledger = asyncio.run(repos.ledgers.get(LEARNER, "course-1"))
    assert ledger is not None
    assert ledger.completed_sections == frozenset()


# ---- reads ----


def test_progress_view_includes_module_flags(repos: Repos) -> None:
    create_test_course()
    _enroll(repos)
    _report(repos, VisitSection("course-1-m1", "course-1-m1-s0"))

    view = asyncio.run(
        progress_service.get_progress_view(repos, learner_id=LEARNER, course_id="course-1")
    )
    assert view.course.id == "course-1"
    assert [m.completed for m in view.modules] == [False, True]
    assert view.enrollment is not None


def test_progress_view_without_ledger_raises(repos: Repos) -> None:
    create_test_course()
    with pytest.raises(NoProgressError):
        asyncio.run(
            progress_service.get_progress_view(
                repos, learner_id=LEARNER, course_id="course-1"
            )
        )


def test_list_progress_pairs_ledgers_with_courses(repos: Repos) -> None:
    create_test_course(course_id="course-1")
    create_test_course(course_id="course-2")
    _enroll(repos, "course-1")
    _enroll(repos, "course-2")
    _report(repos, VisitSection("course-2-m0", "course-2-m0-s0"), course_id="course-2", now=500)

    items = asyncio.run(progress_service.list_progress(repos, LEARNER))
    assert [course.id for _, course in items] == ["course-2", "course-1"]


# ---- cache invalidation ordering ----


def _recording(repos: Repos, monkeypatch: pytest.MonkeyPatch) -> tuple[Repos, list[str]]:
    calls: list[str] = []

    async def commit() -> None:
        calls.append("commit")

    async def delete(key: str) -> None:
        calls.append(f"delete {key}")

    monkeypatch.setattr(cache_service, "delete", delete)
    return replace(repos, commit=commit), calls


def test_report_commits_before_invalidating(
    repos: Repos, monkeypatch: pytest.MonkeyPatch
) -> None:
    create_test_course()
    _enroll(repos)
    recording, calls = _recording(repos, monkeypatch)

    _report(recording, VisitSection("course-1-m0", "course-1-m0-s0"))
    assert calls == ["commit", "delete progress:learner-1:course-1"]


def test_enroll_commits_before_invalidating(
    repos: Repos, monkeypatch: pytest.MonkeyPatch
) -> None:
    create_test_course()
    recording, calls = _recording(repos, monkeypatch)

    _enroll(recording)
    assert calls == ["commit", "delete progress:learner-1:course-1"]


def test_rejected_event_neither_commits_nor_invalidates(
    repos: Repos, monkeypatch: pytest.MonkeyPatch
) -> None:
    create_test_course()
    _enroll(repos)
    recording, calls = _recording(repos, monkeypatch)

    with pytest.raises(InvalidReferenceError):
        _report(recording, VisitSection("course-1-m1", "course-1-m0-s0"))
    assert calls == []
