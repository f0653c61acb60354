from __future__ import annotations

import time
from dataclasses import replace

import pytest

from app.core.clock import now_ts
from app.models.enrollment import Enrollment
from app.models.progress import ProgressLedger
from app.services import completion


def test_now_is_whole_epoch_seconds() -> None:
    before = int(time.time())
    value = now_ts()
    assert isinstance(value, int)
    assert before <= value <= int(time.time())


def test_services_default_to_the_shared_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(completion, "now_ts", lambda: 1234)
    enrollment = Enrollment.new(learner_id="learner-1", course_id="c1", enrolled_at=1)
    ledger = ProgressLedger.new(
        learner_id="learner-1", course_id="c1", enrollment_id=enrollment.id, created_at=1
    )
    done = completion.on_ledger_updated(enrollment, replace(ledger, overall_progress=100))
    assert done.completed_at == 1234
