from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Enrollment:
    id: str
    learner_id: str
    course_id: str
    enrolled_at: int
    status: str = "active"  # active|completed|cancelled
    completed_at: int | None = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"

    @staticmethod
    def new(*, learner_id: str, course_id: str, enrolled_at: int) -> Enrollment:
        return Enrollment(
            id=str(uuid4()),
            learner_id=learner_id,
            course_id=course_id,
            enrolled_at=enrolled_at,
        )
