"""
E-Learning Platform API
Courses, lessons, enrollment progress, dashboards and forums
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from elearn.auth.firebase_auth import init_firebase
from elearn.auth.session import session_manager
from elearn.core.config import settings
from elearn.core.database import db_manager
from elearn.core.errors import ELearnError
from elearn.courses.course_router import router as course_router
from elearn.courses.enrollment_router import router as enrollment_router
from elearn.courses.lesson_router import router as lesson_router
from elearn.courses.navigation_router import router as navigation_router
from elearn.dashboards.dashboard_router import router as dashboard_router
from elearn.forums.forum_router import router as forum_router
from elearn.system.health_router import router as health_router
from elearn.translation.translation_router import router as translation_router
from elearn.users.user_router import router as user_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="E-Learning Platform")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ELearnError)
async def elearn_error_handler(request: Request, exc: ELearnError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
async def startup_event():
    db_manager.connect()
    await db_manager.get_store().create_indexes()
    if settings.FIREBASE_ENABLED:
        init_firebase()
    logger.info("E-Learning Platform started")


@app.on_event("shutdown")
async def shutdown_event():
    session_manager.clear()
    db_manager.disconnect()


# ==================== ROUTER REGISTRATION ====================
app.include_router(user_router)
app.include_router(course_router)
app.include_router(lesson_router)
app.include_router(enrollment_router)
app.include_router(navigation_router)
app.include_router(dashboard_router)
app.include_router(forum_router)
app.include_router(translation_router)
app.include_router(health_router)
