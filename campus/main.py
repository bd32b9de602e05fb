import asyncio
import contextlib
import logging
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus.core import config
from campus.core.errors import register_exception_handlers
from campus.core.logging_middleware import LoggingMiddleware
from campus.db.init_db import init_db
from campus.db.session import SessionLocal
from campus.db.session_store import run_session_sweeper

from campus.routers.admin import router as admin_router
from campus.routers.ai import router as ai_router
from campus.routers.assignments import router as assignments_router
from campus.routers.auth import router as auth_router
from campus.routers.courses import router as courses_router
from campus.routers.dashboard import router as dashboard_router
from campus.routers.enrollments import router as enrollments_router
from campus.routers.password_recovery import router as password_recovery_router
from campus.routers.submissions import router as submissions_router

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    sweeper = asyncio.create_task(
        run_session_sweeper(SessionLocal, config.SESSION_SWEEP_INTERVAL_SECONDS)
    )
    app.state.session_sweeper = sweeper
    logger.info("Session sweeper running every %ss", config.SESSION_SWEEP_INTERVAL_SECONDS)
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(title="Campus Portal", lifespan=lifespan)

# Middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(password_recovery_router, prefix="/password-recovery", tags=["auth"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
app.include_router(courses_router, prefix="/courses", tags=["courses"])
app.include_router(enrollments_router, prefix="/enrollments", tags=["enrollments"])
app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(ai_router, prefix="/ai", tags=["ai"])

# Dashboard + navigation (no prefix, routes define full paths)
app.include_router(dashboard_router, tags=["dashboard"])
