from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from app.models.progress import ProgressLedger
from app.services.errors import ConcurrentModificationError


class LedgerRepo(Protocol):
    async def get(self, learner_id: str, course_id: str) -> ProgressLedger | None: ...
    async def add(self, ledger: ProgressLedger) -> None: ...
    async def save(
        self, ledger: ProgressLedger, *, expected_version: int
    ) -> ProgressLedger: ...
    async def list_by_learner(self, learner_id: str) -> list[ProgressLedger]: ...


class InMemoryLedgerRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, str], ProgressLedger] = {}

    async def get(self, learner_id: str, course_id: str) -> ProgressLedger | None:
        return self._store.get((learner_id, course_id))

    async def add(self, ledger: ProgressLedger) -> None:
        key = (ledger.learner_id, ledger.course_id)
        if key in self._store:
            raise ConcurrentModificationError("progress ledger already exists")
        self._store[key] = ledger

    async def save(
        self, ledger: ProgressLedger, *, expected_version: int
    ) -> ProgressLedger:
        """Compare-and-swap on version.  Returns the stored ledger."""
        key = (ledger.learner_id, ledger.course_id)
        current = self._store.get(key)
        if current is None or current.version != expected_version:
            raise ConcurrentModificationError
        stored = replace(ledger, version=expected_version + 1)
        self._store[key] = stored
        return stored

    async def list_by_learner(self, learner_id: str) -> list[ProgressLedger]:
        found = [lg for lg in self._store.values() if lg.learner_id == learner_id]
        return sorted(found, key=lambda lg: lg.last_accessed_at or 0, reverse=True)
