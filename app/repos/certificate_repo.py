from __future__ import annotations

from typing import Protocol

from app.models.certificate import Certificate
from app.services.errors import DuplicateCertificateError


class CertificateRepo(Protocol):
    async def get_for(self, learner_id: str, course_id: str) -> Certificate | None: ...
    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None: ...
    async def add(self, certificate: Certificate) -> None: ...
    async def list_by_learner(self, learner_id: str) -> list[Certificate]: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._by_pair: dict[tuple[str, str], Certificate] = {}
        self._by_share_id: dict[str, Certificate] = {}

    async def get_for(self, learner_id: str, course_id: str) -> Certificate | None:
        return self._by_pair.get((learner_id, course_id))

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        return self._by_share_id.get(certificate_id)

    async def add(self, certificate: Certificate) -> None:
        key = (certificate.learner_id, certificate.course_id)
        if key in self._by_pair or certificate.certificate_id in self._by_share_id:
            raise DuplicateCertificateError
        self._by_pair[key] = certificate
        self._by_share_id[certificate.certificate_id] = certificate

    async def list_by_learner(self, learner_id: str) -> list[Certificate]:
        found = [c for c in self._by_pair.values() if c.learner_id == learner_id]
        return sorted(found, key=lambda c: c.issued_at, reverse=True)
