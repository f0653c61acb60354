"""Enrollment completion and certificate eligibility rules."""

from __future__ import annotations

from dataclasses import replace

from app.core.clock import now_ts
from app.models.enrollment import Enrollment
from app.models.progress import ProgressLedger


def on_ledger_updated(
    enrollment: Enrollment, ledger: ProgressLedger, *, now: int | None = None
) -> Enrollment:
    """Flip an active enrollment to completed once the ledger hits 100%.

    Returns the same object when nothing changes, so callers can use an
    identity check to decide whether to persist.  completed_at is written
    here and nowhere else.
    """
    if enrollment.status != "active" or ledger.overall_progress != 100:
        return enrollment
    if now is None:
        now = now_ts()
    return replace(enrollment, status="completed", completed_at=now)


def is_eligible(ledger: ProgressLedger) -> bool:
    """Certificate gate.  Accepts anything at or above 100."""
    return ledger.overall_progress >= 100
