"""Progress engine: pure state transitions over a progress ledger.

Every function here is synchronous and free of I/O.  The caller loads
the ledger and the curriculum snapshot, calls apply_event, and persists
the returned ledger.  Inputs are never mutated; a rejected event leaves
the caller's ledger exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

from app.core.clock import now_ts
from app.models.curriculum import CurriculumSnapshot
from app.models.progress import (
    ProgressEvent,
    ProgressLedger,
    QuizLocation,
    SectionLocation,
    SetFinalExamCompleted,
    VisitQuiz,
    VisitSection,
)
from app.services.errors import InvalidReferenceError


def recompute_aggregate(ledger: ProgressLedger, snapshot: CurriculumSnapshot) -> int:
    """Percentage of the snapshot's items the ledger has completed.

    Completed ids that are no longer in the snapshot do not count.
    A snapshot with no items yields 0.
    """
    total_items = snapshot.total_items
    if total_items == 0:
        return 0

    completed = len(ledger.completed_sections & snapshot.all_section_ids)
    completed += len(ledger.completed_quizzes & snapshot.all_quiz_ids)
    if ledger.completed_final_exam and snapshot.final_exam_id is not None:
        completed += 1

    percent = (Decimal(100) * completed / total_items).quantize(
        Decimal(1), rounding=ROUND_HALF_UP
    )
    return max(0, min(100, int(percent)))


def is_complete(ledger: ProgressLedger) -> bool:
    return ledger.overall_progress == 100


def apply_event(
    ledger: ProgressLedger,
    snapshot: CurriculumSnapshot,
    event: ProgressEvent,
    *,
    now: int | None = None,
) -> tuple[ProgressLedger, bool]:
    """Apply one event and recompute the aggregate.

    Returns (updated ledger, completion signal).  The signal is True when
    the updated ledger is at 100%.

    Raises:
        InvalidReferenceError: the section or quiz is not part of the
            named module in this snapshot.
    """
    if isinstance(event, VisitSection):
        module = snapshot.find_module(event.module_id)
        if module is None or event.section_id not in module.section_ids:
            raise InvalidReferenceError(
                f"section {event.section_id!r} not found in module {event.module_id!r}"
            )
        updated = replace(
            ledger,
            current_location=SectionLocation(event.module_id, event.section_id),
            completed_sections=ledger.completed_sections | {event.section_id},
        )
    elif isinstance(event, VisitQuiz):
        module = snapshot.find_module(event.module_id)
        if module is None or module.quiz_id != event.quiz_id:
            raise InvalidReferenceError(
                f"quiz {event.quiz_id!r} not found in module {event.module_id!r}"
            )
        updated = replace(
            ledger,
            current_location=QuizLocation(event.module_id, event.quiz_id),
            completed_quizzes=ledger.completed_quizzes | {event.quiz_id},
        )
    elif isinstance(event, SetFinalExamCompleted):
        if event.completed:
            updated = replace(ledger, completed_final_exam=True, current_location=None)
        else:
            updated = replace(ledger, completed_final_exam=False)
    else:
        raise TypeError(f"unsupported progress event {event!r}")

    updated = replace(
        updated,
        overall_progress=recompute_aggregate(updated, snapshot),
        last_accessed_at=now_ts() if now is None else now,
    )
    return updated, is_complete(updated)


@dataclass(frozen=True, slots=True)
class ModuleProgress:
    module_id: str
    completed_sections: int
    total_sections: int
    quiz_id: str | None
    quiz_completed: bool

    @property
    def completed(self) -> bool:
        sections_done = self.completed_sections == self.total_sections
        return sections_done and (self.quiz_id is None or self.quiz_completed)


def summarize_modules(
    ledger: ProgressLedger, snapshot: CurriculumSnapshot
) -> list[ModuleProgress]:
    """Per-module completion counts, in curriculum order."""
    return [
        ModuleProgress(
            module_id=module.module_id,
            completed_sections=sum(
                1 for s in module.section_ids if s in ledger.completed_sections
            ),
            total_sections=len(module.section_ids),
            quiz_id=module.quiz_id,
            quiz_completed=module.quiz_id in ledger.completed_quizzes,
        )
        for module in snapshot.modules
    ]
