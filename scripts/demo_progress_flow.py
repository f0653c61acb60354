"""Demo: enroll, work through the sample course and claim a certificate.

Runs entirely in-process against in-memory repositories.

Run with:
    python scripts/demo_progress_flow.py
"""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from app.db.seed import SAMPLE_COURSE_ID, seed_sample_course
from app.main import app
from app.repos.registry import in_memory_repos
from app.services import token_service

LEARNER_ID = "demo-learner"


def main() -> None:
    asyncio.run(seed_sample_course(in_memory_repos.courses))
    client = TestClient(app)
    token = token_service.create_access_token(
        sub=LEARNER_ID, roles=["student"], name="Demo Learner"
    )
    headers = {"Authorization": f"Bearer {token}"}

    # ── Step 1: browse and enroll ───────────────────────────────────
    r = client.get(f"/v1/courses/{SAMPLE_COURSE_ID}", headers=headers)
    course = r.json()
    print(f"1. GET  course              → {r.status_code}  items={course['total_items']}")

    r = client.post(f"/v1/courses/{SAMPLE_COURSE_ID}/enroll", headers=headers)
    print(f"2. POST enroll              → {r.status_code}")

    # ── Step 2: certificate too early ───────────────────────────────
    r = client.post(
        "/v1/certificates", json={"course_id": SAMPLE_COURSE_ID}, headers=headers
    )
    print(f"3. POST certificate (early) → {r.status_code}  {r.json()}")

    # ── Step 3: visit every section and quiz ────────────────────────
    step = 4
    for module in course["modules"]:
        targets = [{"section_id": s} for s in module["section_ids"]]
        if module["quiz_id"]:
            targets.append({"quiz_id": module["quiz_id"]})
        for target in targets:
            body = {"course_id": SAMPLE_COURSE_ID, "module_id": module["module_id"]}
            r = client.put("/v1/progress", json={**body, **target}, headers=headers)
            print(
                f"{step}. PUT  progress            → {r.status_code}  "
                f"{r.json()['overall_progress']}%"
            )
            step += 1

    # ── Step 4: final exam ──────────────────────────────────────────
    r = client.put(
        "/v1/progress",
        json={"course_id": SAMPLE_COURSE_ID, "completed_final_exam": True},
        headers=headers,
    )
    body = r.json()
    print(
        f"{step}. PUT  final exam          → {r.status_code}  "
        f"{body['overall_progress']}%  enrollment={body['enrollment_status']}"
    )
    step += 1

    # ── Step 5: certificate, twice ──────────────────────────────────
    for _ in range(2):
        r = client.post(
            "/v1/certificates", json={"course_id": SAMPLE_COURSE_ID}, headers=headers
        )
        print(
            f"{step}. POST certificate          → {r.status_code}  "
            f"{r.json()['share_url']}"
        )
        step += 1


if __name__ == "__main__":
    main()
