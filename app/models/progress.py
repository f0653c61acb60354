from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SectionLocation:
    module_id: str
    section_id: str


@dataclass(frozen=True, slots=True)
class QuizLocation:
    module_id: str
    quiz_id: str


Location = SectionLocation | QuizLocation


@dataclass(frozen=True, slots=True)
class ProgressLedger:
    """Per (learner, course) record of completed content.

    overall_progress is derived by the progress engine and never set by
    callers.  version is owned by the ledger store and is bumped on every
    successful save.
    """

    learner_id: str
    course_id: str
    enrollment_id: str
    completed_sections: frozenset[str] = frozenset()
    completed_quizzes: frozenset[str] = frozenset()
    completed_final_exam: bool = False
    current_location: Location | None = None
    overall_progress: int = 0
    last_accessed_at: int | None = None
    version: int = 0

    @property
    def status(self) -> str:
        if self.overall_progress >= 100:
            return "completed"
        if self.overall_progress > 0:
            return "in_progress"
        return "not_started"

    @staticmethod
    def new(
        *, learner_id: str, course_id: str, enrollment_id: str, created_at: int
    ) -> ProgressLedger:
        return ProgressLedger(
            learner_id=learner_id,
            course_id=course_id,
            enrollment_id=enrollment_id,
            last_accessed_at=created_at,
        )


# --- Events ---


@dataclass(frozen=True, slots=True)
class VisitSection:
    module_id: str
    section_id: str


@dataclass(frozen=True, slots=True)
class VisitQuiz:
    module_id: str
    quiz_id: str


@dataclass(frozen=True, slots=True)
class SetFinalExamCompleted:
    completed: bool = True


ProgressEvent = VisitSection | VisitQuiz | SetFinalExamCompleted


def event_type(event: ProgressEvent) -> str:
    """Stable label for logs and metrics."""
    if isinstance(event, VisitSection):
        return "visit_section"
    if isinstance(event, VisitQuiz):
        return "visit_quiz"
    return "final_exam"
