"""Repository bundles handed to services.

The in-memory bundle is a process-wide singleton used when no
DATABASE_URL is configured (dev and tests).  The PostgreSQL bundle is
built per request around one AsyncSession so every repo shares the
same transaction.

commit makes the request's writes visible to other requests.  Services
call it before deleting a cached view, so a reader that misses the cache
loads committed rows.  get_repos still commits when the handler returns.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from app.repos.course_repo import CourseRepo, InMemoryCourseRepo
from app.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from app.repos.ledger_repo import InMemoryLedgerRepo, LedgerRepo
from app.repos.pg_certificate_repo import PgCertificateRepo
from app.repos.pg_course_repo import PgCourseRepo
from app.repos.pg_enrollment_repo import PgEnrollmentRepo
from app.repos.pg_ledger_repo import PgLedgerRepo


@dataclass(frozen=True, slots=True)
class Repos:
    courses: CourseRepo
    enrollments: EnrollmentRepo
    ledgers: LedgerRepo
    certificates: CertificateRepo
    commit: Callable[[], Awaitable[None]]


async def _writes_are_immediate() -> None:
    return None


in_memory_repos = Repos(
    courses=InMemoryCourseRepo(),
    enrollments=InMemoryEnrollmentRepo(),
    ledgers=InMemoryLedgerRepo(),
    certificates=InMemoryCertificateRepo(),
    commit=_writes_are_immediate,
)


def pg_repos(session: AsyncSession) -> Repos:
    return Repos(
        courses=PgCourseRepo(session),
        enrollments=PgEnrollmentRepo(session),
        ledgers=PgLedgerRepo(session),
        certificates=PgCertificateRepo(session),
        commit=session.commit,
    )
