from __future__ import annotations

import secrets
from dataclasses import dataclass
from uuid import uuid4

CERTIFICATE_ID_LENGTH = 16


def new_share_id() -> str:
    """Random URL-safe id used in public certificate links."""
    return secrets.token_urlsafe(CERTIFICATE_ID_LENGTH)[:CERTIFICATE_ID_LENGTH]


@dataclass(frozen=True, slots=True)
class Certificate:
    """Issued course certificate.  At most one per (learner, course)."""

    id: str
    certificate_id: str
    learner_id: str
    course_id: str
    student_name: str
    course_name: str
    instructor_name: str
    score: int
    completion_date: int
    issued_at: int

    @property
    def share_url(self) -> str:
        return f"/certificates/{self.certificate_id}"

    @staticmethod
    def new(
        *,
        learner_id: str,
        course_id: str,
        student_name: str,
        course_name: str,
        instructor_name: str,
        completion_date: int,
        issued_at: int,
        score: int = 100,
    ) -> Certificate:
        return Certificate(
            id=str(uuid4()),
            certificate_id=new_share_id(),
            learner_id=learner_id,
            course_id=course_id,
            student_name=student_name,
            course_name=course_name,
            instructor_name=instructor_name,
            score=score,
            completion_date=completion_date,
            issued_at=issued_at,
        )
