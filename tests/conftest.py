from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.course import Course, CourseModule, Section
from app.repos.registry import Repos, in_memory_repos
from app.services import token_service
from app.services.cache import cache_service

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_repos() -> None:
    """Clear every in-memory repository between tests."""
    in_memory_repos.courses._courses.clear()  # type: ignore[attr-defined]
    in_memory_repos.courses._modules.clear()  # type: ignore[attr-defined]
    in_memory_repos.courses._sections.clear()  # type: ignore[attr-defined]
    in_memory_repos.enrollments._store.clear()  # type: ignore[attr-defined]
    in_memory_repos.ledgers._store.clear()  # type: ignore[attr-defined]
    in_memory_repos.certificates._by_pair.clear()  # type: ignore[attr-defined]
    in_memory_repos.certificates._by_share_id.clear()  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def repos() -> Repos:
    return in_memory_repos


def mint_token(
    username: str = "test-learner",
    roles: list[str] | None = None,
    name: str | None = None,
) -> str:
    """Create a valid HS256 JWT for testing."""
    return token_service.create_access_token(
        sub=username, roles=roles or ["student"], name=name
    )


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_token() -> str:
    return mint_token(username="learner-1", roles=["student"], name="Amina Learner")


@pytest.fixture
def instructor_token() -> str:
    return mint_token(username="instructor-1", roles=["instructor"], name="Omar Haddad")


@pytest.fixture
def admin_token() -> str:
    return mint_token(username="test-admin", roles=["admin"])


# ---------------------------------------------------------------------------
# Catalog helpers
# ---------------------------------------------------------------------------


def create_test_course(
    *,
    course_id: str = "course-1",
    sections_per_module: tuple[int, ...] = (2, 1),
    quiz_modules: tuple[int, ...] = (0,),
    final_exam: bool = True,
    status: str = "published",
    instructor_id: str = "instructor-1",
) -> tuple[Course, list[CourseModule], list[Section]]:
    """Persist a course in the in-memory repo.

    Module i gets sections_per_module[i] sections with ids
    "{course_id}-m{i}-s{j}", and a quiz "{course_id}-m{i}-quiz" when i is
    listed in quiz_modules.  The final exam id is "{course_id}-final".
    """
    course = Course(
        id=course_id,
        title=f"Course {course_id}",
        status=status,
        description="A course for tests",
        instructor_id=instructor_id,
        instructor_name="Omar Haddad",
        final_exam_id=f"{course_id}-final" if final_exam else None,
    )
    modules = [
        CourseModule(
            id=f"{course_id}-m{i}",
            course_id=course_id,
            position=i,
            title=f"Module {i}",
            quiz_id=f"{course_id}-m{i}-quiz" if i in quiz_modules else None,
        )
        for i in range(len(sections_per_module))
    ]
    sections = [
        Section(
            id=f"{course_id}-m{i}-s{j}",
            module_id=f"{course_id}-m{i}",
            position=j,
            title=f"Section {i}.{j}",
        )
        for i, count in enumerate(sections_per_module)
        for j in range(count)
    ]

    async def _persist() -> None:
        await in_memory_repos.courses.add(course)
        for m in modules:
            await in_memory_repos.courses.add_module(m)
        for s in sections:
            await in_memory_repos.courses.add_section(s)

    asyncio.run(_persist())
    return course, modules, sections
