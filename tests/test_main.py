from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from app.core.config import SETTINGS
from app.db.seed import SAMPLE_COURSE_ID, seed_sample_course
from app.main import app
from app.repos.course_repo import InMemoryCourseRepo
from app.services.curriculum_loader import load_curriculum
from tests.conftest import auth, mint_token


@pytest.mark.skipif(not SETTINGS.is_dev, reason="sample catalog is seeded in dev only")
def test_startup_seeds_sample_course() -> None:
    with TestClient(app) as client:
        resp = client.get("/v1/courses", headers=auth(mint_token()))
    assert resp.status_code == 200
    assert SAMPLE_COURSE_ID in [c["id"] for c in resp.json()]


def test_sample_course_outline() -> None:
    courses = InMemoryCourseRepo()
    asyncio.run(seed_sample_course(courses))
    asyncio.run(seed_sample_course(courses))  # second run is a no-op

    course, snapshot = asyncio.run(load_curriculum(courses, SAMPLE_COURSE_ID))
    assert course.is_published
    assert [len(m.section_ids) for m in snapshot.modules] == [2, 3]
    assert snapshot.modules[0].quiz_id == "quiz-basics"
    assert snapshot.final_exam_id == "final-exam-dev"
    # 5 sections + 1 quiz + final exam
    assert snapshot.total_items == 7
