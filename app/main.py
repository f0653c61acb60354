from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.certificates import router as certificates_router
from app.api.courses import router as courses_router
from app.api.health import router as health_router
from app.api.instructor import router as instructor_router
from app.api.metrics_endpoint import router as metrics_router
from app.api.progress import router as progress_router
from app.api.students import router as students_router
from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.db.engine import async_session_factory, lifespan_db
from app.db.redis import lifespan_redis
from app.db.seed import seed_sample_course
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import RequestContextMiddleware
from app.repos.registry import in_memory_repos

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one fails.
    async with lifespan_db():
        async with lifespan_redis():
            if SETTINGS.is_dev and async_session_factory is None:
                await seed_sample_course(in_memory_repos.courses)
            yield


app = FastAPI(
    title="lms-progress-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(courses_router)
app.include_router(progress_router)
app.include_router(certificates_router)
app.include_router(students_router)
app.include_router(instructor_router)

logger.info(
    "lms-progress-service started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
