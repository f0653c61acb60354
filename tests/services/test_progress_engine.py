from __future__ import annotations

from dataclasses import replace

import pytest

from app.models.curriculum import CurriculumSnapshot, ModuleOutline
from app.models.progress import (
    ProgressLedger,
    QuizLocation,
    SectionLocation,
    SetFinalExamCompleted,
    VisitQuiz,
    VisitSection,
)
from app.services.errors import InvalidReferenceError
from app.services.progress_engine import (
    apply_event,
    is_complete,
    recompute_aggregate,
    summarize_modules,
)

NOW = 1_700_000_000


def _ledger(**kwargs) -> ProgressLedger:
    base = ProgressLedger.new(
        learner_id="learner-1", course_id="c1", enrollment_id="e1", created_at=NOW - 60
    )
    return replace(base, **kwargs)


def _snapshot() -> CurriculumSnapshot:
    # 4 items: s1, s2, q1, final
    return CurriculumSnapshot(
        course_id="c1",
        modules=(
            ModuleOutline(module_id="m1", section_ids=("s1", "s2"), quiz_id="q1"),
            ModuleOutline(module_id="m2", section_ids=()),
        ),
        final_exam_id="final",
    )


# ---- apply_event ----


def test_visit_section_records_section_and_location() -> None:
    ledger, complete = apply_event(
        _ledger(), _snapshot(), VisitSection("m1", "s1"), now=NOW
    )
    assert ledger.completed_sections == {"s1"}
    assert ledger.current_location == SectionLocation("m1", "s1")
    assert ledger.overall_progress == 25
    assert ledger.last_accessed_at == NOW
    assert complete is False


def test_visit_quiz_records_quiz_and_location() -> None:
    ledger, _ = apply_event(_ledger(), _snapshot(), VisitQuiz("m1", "q1"), now=NOW)
    assert ledger.completed_quizzes == {"q1"}
    assert ledger.current_location == QuizLocation("m1", "q1")
    assert ledger.overall_progress == 25


def test_final_exam_sets_flag_and_clears_location() -> None:
    start = _ledger(current_location=SectionLocation("m1", "s1"))
    ledger, _ = apply_event(start, _snapshot(), SetFinalExamCompleted(True), now=NOW)
    assert ledger.completed_final_exam is True
    assert ledger.current_location is None
    assert ledger.overall_progress == 25


def test_final_exam_reset_clears_flag_and_keeps_location() -> None:
    start = _ledger(
        completed_final_exam=True,
        current_location=SectionLocation("m1", "s1"),
        overall_progress=25,
    )
    ledger, _ = apply_event(start, _snapshot(), SetFinalExamCompleted(False), now=NOW)
    assert ledger.completed_final_exam is False
    assert ledger.current_location == SectionLocation("m1", "s1")
    assert ledger.overall_progress == 0


def test_completion_signal_when_everything_done() -> None:
    start = _ledger(completed_sections=frozenset({"s1", "s2"}), completed_quizzes=frozenset({"q1"}))
    ledger, complete = apply_event(
        start, _snapshot(), SetFinalExamCompleted(True), now=NOW
    )
    assert ledger.overall_progress == 100
    assert complete is True
    assert is_complete(ledger)


def test_section_in_wrong_module_is_rejected() -> None:
    with pytest.raises(InvalidReferenceError):
        apply_event(_ledger(), _snapshot(), VisitSection("m2", "s1"), now=NOW)


def test_unknown_module_is_rejected() -> None:
    with pytest.raises(InvalidReferenceError):
        apply_event(_ledger(), _snapshot(), VisitSection("nope", "s1"), now=NOW)


def test_quiz_not_owned_by_module_is_rejected() -> None:
    with pytest.raises(InvalidReferenceError):
        apply_event(_ledger(), _snapshot(), VisitQuiz("m2", "q1"), now=NOW)


def test_final_exam_id_is_not_a_module_quiz() -> None:
    with pytest.raises(InvalidReferenceError):
        apply_event(_ledger(), _snapshot(), VisitQuiz("m1", "final"), now=NOW)


def test_invalid_reference_leaves_ledger_unchanged() -> None:
    start = _ledger(completed_sections=frozenset({"s1"}), overall_progress=25)
    before = replace(start)
    with pytest.raises(InvalidReferenceError):
        apply_event(start, _snapshot(), VisitSection("m1", "ghost"), now=NOW)
    assert start == before


def test_apply_event_does_not_mutate_input() -> None:
    start = _ledger()
    apply_event(start, _snapshot(), VisitSection("m1", "s1"), now=NOW)
    assert start.completed_sections == frozenset()
    assert start.overall_progress == 0


def test_repeated_visit_is_idempotent_except_timestamp() -> None:
    once, _ = apply_event(_ledger(), _snapshot(), VisitSection("m1", "s1"), now=NOW)
    twice, _ = apply_event(once, _snapshot(), VisitSection("m1", "s1"), now=NOW + 30)
    assert replace(twice, last_accessed_at=None) == replace(once, last_accessed_at=None)
    assert twice.last_accessed_at == NOW + 30


def test_aggregate_is_monotonic_under_visits() -> None:
    events = [
        VisitSection("m1", "s1"),
        VisitSection("m1", "s1"),
        VisitQuiz("m1", "q1"),
        VisitSection("m1", "s2"),
        SetFinalExamCompleted(True),
    ]
    ledger = _ledger()
    seen = [ledger.overall_progress]
    for event in events:
        ledger, _ = apply_event(ledger, _snapshot(), event, now=NOW)
        seen.append(ledger.overall_progress)
    assert seen == sorted(seen)
    assert seen[-1] == 100


def test_final_exam_only_course_goes_zero_to_hundred() -> None:
    snapshot = CurriculumSnapshot(course_id="c1", modules=(), final_exam_id="final")
    ledger, complete = apply_event(
        _ledger(), snapshot, SetFinalExamCompleted(True), now=NOW
    )
    assert ledger.overall_progress == 100
    assert complete is True


def test_unsupported_event_type_raises() -> None:
    with pytest.raises(TypeError):
        apply_event(_ledger(), _snapshot(), object(), now=NOW)  # type: ignore[arg-type]


# ---- recompute_aggregate ----


@pytest.mark.parametrize(
    ("done", "expected"),
    [(set(), 0), ({"a"}, 33), ({"a", "b"}, 67), ({"a", "b", "c"}, 100)],
)
def test_rounding_over_three_items(done: set[str], expected: int) -> None:
    snapshot = CurriculumSnapshot(
        course_id="c1", modules=(ModuleOutline("m1", ("a", "b", "c")),)
    )
    ledger = _ledger(completed_sections=frozenset(done))
    assert recompute_aggregate(ledger, snapshot) == expected


def test_rounding_half_goes_up() -> None:
    # 1 of 8 is 12.5%
    snapshot = CurriculumSnapshot(
        course_id="c1",
        modules=(ModuleOutline("m1", tuple(f"s{i}" for i in range(8))),),
    )
    ledger = _ledger(completed_sections=frozenset({"s0"}))
    assert recompute_aggregate(ledger, snapshot) == 13


def test_empty_curriculum_is_zero() -> None:
    snapshot = CurriculumSnapshot(course_id="c1")
    ledger = _ledger(completed_sections=frozenset({"stale"}), completed_final_exam=True)
    assert recompute_aggregate(ledger, snapshot) == 0


def test_removed_content_no_longer_counts() -> None:
    ledger = _ledger(
        completed_sections=frozenset({"s1", "s2", "removed"}),
        completed_quizzes=frozenset({"q1", "old-quiz"}),
        completed_final_exam=True,
    )
    assert recompute_aggregate(ledger, _snapshot()) == 100

    shrunk = CurriculumSnapshot(
        course_id="c1", modules=(ModuleOutline("m1", ("s1", "s3")),)
    )
    assert 0 <= recompute_aggregate(ledger, shrunk) <= 100
    assert recompute_aggregate(ledger, shrunk) == 50


def test_final_exam_flag_ignored_when_course_has_no_exam() -> None:
    snapshot = CurriculumSnapshot(course_id="c1", modules=(ModuleOutline("m1", ("s1",)),))
    ledger = _ledger(completed_final_exam=True)
    assert recompute_aggregate(ledger, snapshot) == 0


# ---- summarize_modules ----


def test_summarize_modules_reports_per_module_completion() -> None:
    ledger = _ledger(
        completed_sections=frozenset({"s1", "s2"}), completed_quizzes=frozenset()
    )
    m1, m2 = summarize_modules(ledger, _snapshot())
    assert (m1.completed_sections, m1.total_sections) == (2, 2)
    assert m1.quiz_completed is False
    assert m1.completed is False
    # no sections, no quiz
    assert m2.completed is True

    ledger = replace(ledger, completed_quizzes=frozenset({"q1"}))
    m1, _ = summarize_modules(ledger, _snapshot())
    assert m1.completed is True
