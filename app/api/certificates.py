"""Certificate issuance, listing and public verification.

- POST /v1/certificates                  : issue (201) or return existing (200)
- GET  /v1/certificates                  : the learner's certificates
- GET  /v1/certificates/{certificate_id} : public verification, no auth
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.dependencies import RepoDep, Student
from app.models.certificate import Certificate
from app.services import certificate_service
from app.services.errors import CourseNotFoundError, NoProgressError, NotEligibleError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


class CertificateIssueIn(BaseModel):
    course_id: str


class CertificateOut(BaseModel):
    certificate_id: str
    course_id: str
    student_name: str
    course_name: str
    instructor_name: str
    score: int
    completion_date: int
    issued_at: int
    share_url: str

    @classmethod
    def from_certificate(cls, cert: Certificate) -> CertificateOut:
        return cls(
            certificate_id=cert.certificate_id,
            course_id=cert.course_id,
            student_name=cert.student_name,
            course_name=cert.course_name,
            instructor_name=cert.instructor_name,
            score=cert.score,
            completion_date=cert.completion_date,
            issued_at=cert.issued_at,
            share_url=cert.share_url,
        )


class CertificateIssueOut(BaseModel):
    certificate: CertificateOut
    share_url: str
    created: bool


@router.post(
    "",
    response_model=CertificateIssueOut,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": CertificateIssueOut}, 400: {}, 404: {}},
)
async def issue_certificate(
    body: CertificateIssueIn,
    principal: Student,
    repos: RepoDep,
    response: Response,
):
    try:
        cert, created = await certificate_service.issue_certificate(
            repos,
            learner_id=principal.user_id,
            student_name=principal.display_name,
            course_id=body.course_id,
        )
    except NotEligibleError as e:
        logger.warning(
            "Certificate denied user=%s course=%s progress=%d",
            principal.user_id,
            body.course_id,
            e.current_progress,
        )
        return JSONResponse(
            status_code=400,
            content={"error": e.message, "current_progress": e.current_progress},
        )
    except NoProgressError as e:
        raise HTTPException(status_code=400, detail=e.message) from None
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="course not found") from None

    if not created:
        response.status_code = status.HTTP_200_OK
    return CertificateIssueOut(
        certificate=CertificateOut.from_certificate(cert),
        share_url=cert.share_url,
        created=created,
    )


@router.get("", response_model=list[CertificateOut])
async def list_certificates(principal: Student, repos: RepoDep) -> list[CertificateOut]:
    certs = await certificate_service.list_certificates(repos, principal.user_id)
    return [CertificateOut.from_certificate(c) for c in certs]


@router.get("/{certificate_id}", response_model=CertificateOut)
async def verify_certificate(certificate_id: str, repos: RepoDep) -> CertificateOut:
    cert = await certificate_service.get_public_certificate(repos, certificate_id)
    if cert is None:
        raise HTTPException(status_code=404, detail="certificate not found")
    return CertificateOut.from_certificate(cert)
