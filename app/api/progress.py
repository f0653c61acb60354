"""Progress reporting and read endpoints.

PUT /v1/progress
  -> translate body into exactly one progress event
  -> progress_service.report_progress (load, apply, CAS save, complete)
  -> invalidate cached view

GET /v1/progress/{course_id}
  -> read-through cache (check cache -> miss -> build view -> populate)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, model_validator

from app.api.dependencies import RepoDep, Student
from app.core.config import SETTINGS
from app.models.progress import (
    Location,
    ProgressEvent,
    ProgressLedger,
    QuizLocation,
    SetFinalExamCompleted,
    VisitQuiz,
    VisitSection,
)
from app.services import progress_service
from app.services.cache import cache_service, progress_key
from app.services.errors import (
    ConcurrentModificationError,
    CourseNotFoundError,
    CurriculumIntegrityError,
    InvalidReferenceError,
    LearningError,
    NoProgressError,
    NotEnrolledError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class ProgressReportIn(BaseModel):
    course_id: str
    module_id: str | None = None
    section_id: str | None = None
    quiz_id: str | None = None
    completed_final_exam: bool | None = None

    @model_validator(mode="after")
    def _exactly_one_target(self) -> ProgressReportIn:
        given = [
            self.section_id is not None,
            self.quiz_id is not None,
            self.completed_final_exam is not None,
        ]
        if sum(given) != 1:
            raise ValueError(
                "exactly one of section_id, quiz_id, completed_final_exam is required"
            )
        if (self.section_id or self.quiz_id) and not self.module_id:
            raise ValueError("module_id is required with section_id or quiz_id")
        if self.completed_final_exam is False:
            raise ValueError("completed_final_exam can only be set to true")
        return self

    def to_event(self) -> ProgressEvent:
        if self.section_id is not None:
            return VisitSection(module_id=self.module_id, section_id=self.section_id)
        if self.quiz_id is not None:
            return VisitQuiz(module_id=self.module_id, quiz_id=self.quiz_id)
        return SetFinalExamCompleted(completed=True)


class LocationOut(BaseModel):
    kind: str  # section|quiz
    module_id: str
    item_id: str

    @classmethod
    def from_location(cls, loc: Location | None) -> LocationOut | None:
        if loc is None:
            return None
        if isinstance(loc, QuizLocation):
            return cls(kind="quiz", module_id=loc.module_id, item_id=loc.quiz_id)
        return cls(kind="section", module_id=loc.module_id, item_id=loc.section_id)


class LedgerOut(BaseModel):
    course_id: str
    overall_progress: int
    status: str
    completed_sections: list[str]
    completed_quizzes: list[str]
    completed_final_exam: bool
    current_location: LocationOut | None
    last_accessed_at: int | None

    @classmethod
    def from_ledger(cls, ledger: ProgressLedger) -> LedgerOut:
        return cls(
            course_id=ledger.course_id,
            overall_progress=ledger.overall_progress,
            status=ledger.status,
            completed_sections=sorted(ledger.completed_sections),
            completed_quizzes=sorted(ledger.completed_quizzes),
            completed_final_exam=ledger.completed_final_exam,
            current_location=LocationOut.from_location(ledger.current_location),
            last_accessed_at=ledger.last_accessed_at,
        )


class ProgressReportOut(LedgerOut):
    enrollment_status: str


class ProgressListItemOut(LedgerOut):
    course_title: str | None


class ModuleProgressOut(BaseModel):
    module_id: str
    completed_sections: int
    total_sections: int
    quiz_id: str | None
    quiz_completed: bool
    completed: bool


class ProgressDetailOut(LedgerOut):
    course_title: str
    enrollment_status: str | None
    modules: list[ModuleProgressOut]


def raise_for_progress_error(exc: LearningError) -> None:
    """Translate a progress-cycle error into an HTTPException."""
    if isinstance(exc, InvalidReferenceError):
        raise HTTPException(
            status_code=422,
            detail=f"course content changed: {exc.message}",
        ) from None
    if isinstance(exc, NotEnrolledError):
        raise HTTPException(status_code=400, detail=exc.message) from None
    if isinstance(exc, (CourseNotFoundError, NoProgressError)):
        raise HTTPException(status_code=404, detail=exc.message) from None
    if isinstance(exc, (ConcurrentModificationError, CurriculumIntegrityError)):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=exc.message
        ) from None
    raise exc


@router.put("", response_model=ProgressReportOut)
async def report_progress(
    body: ProgressReportIn,
    principal: Student,
    repos: RepoDep,
) -> ProgressReportOut:
    try:
        result = await progress_service.report_progress(
            repos,
            learner_id=principal.user_id,
            course_id=body.course_id,
            event=body.to_event(),
        )
    except LearningError as e:
        logger.warning(
            "Progress report failed user=%s course=%s code=%s",
            principal.user_id,
            body.course_id,
            e.code,
        )
        raise_for_progress_error(e)

    out = LedgerOut.from_ledger(result.ledger)
    return ProgressReportOut(
        **out.model_dump(), enrollment_status=result.enrollment.status
    )


@router.get("", response_model=list[ProgressListItemOut])
async def list_progress(principal: Student, repos: RepoDep) -> list[ProgressListItemOut]:
    items = await progress_service.list_progress(repos, principal.user_id)
    return [
        ProgressListItemOut(
            **LedgerOut.from_ledger(ledger).model_dump(),
            course_title=course.title if course is not None else None,
        )
        for ledger, course in items
    ]


@router.get("/{course_id}", response_model=ProgressDetailOut)
async def get_progress(
    course_id: str, principal: Student, repos: RepoDep
) -> ProgressDetailOut:
    cache_key = progress_key(principal.user_id, course_id)

    cached = await cache_service.get(cache_key)
    if cached is not None:
        return ProgressDetailOut.model_validate_json(cached)

    try:
        view = await progress_service.get_progress_view(
            repos, learner_id=principal.user_id, course_id=course_id
        )
    except LearningError as e:
        raise_for_progress_error(e)

    out = ProgressDetailOut(
        **LedgerOut.from_ledger(view.ledger).model_dump(),
        course_title=view.course.title,
        enrollment_status=view.enrollment.status if view.enrollment else None,
        modules=[
            ModuleProgressOut(
                module_id=m.module_id,
                completed_sections=m.completed_sections,
                total_sections=m.total_sections,
                quiz_id=m.quiz_id,
                quiz_completed=m.quiz_completed,
                completed=m.completed,
            )
            for m in view.modules
        ],
    )
    await cache_service.set(cache_key, out.model_dump_json(), SETTINGS.progress_cache_ttl)
    return out
