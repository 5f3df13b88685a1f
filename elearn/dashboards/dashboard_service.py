"""
Dashboard data loading.

Filters are pushed down to the store (creator, enrolled ids, course id)
instead of scanning whole collections; the aggregator then does the
arithmetic.
"""

from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from elearn.auth.session import Session
from elearn.core.config import settings
from elearn.courses.database import (
    get_course_lessons, list_courses, list_courses_by_creator, list_courses_excluding
)
from elearn.courses.enrollment import EnrollmentTracker
from elearn.courses.models import Course, CourseWithLessons
from elearn.courses.progress import calculate_course_progress
from elearn.dashboards.aggregator import admin_stats, student_stats, teacher_stats
from elearn.users.user_models import Role
from elearn.users.user_service import get_all_users


async def with_lessons(store, courses: Sequence[Course], user_id: Optional[str] = None) -> List[CourseWithLessons]:
    """Attach lessons (and the user's progress when user_id is given)"""
    result = []
    for course in courses:
        lessons = await get_course_lessons(store, course.id)
        progress = calculate_course_progress(lessons, user_id) if user_id else 0
        result.append(CourseWithLessons(**course.model_dump(), lessons=lessons, progress=progress))
    return result

# ==================== PER ROLE ====================

async def student_dashboard(store, session: Session) -> dict:
    tracker = EnrollmentTracker(store)
    enrolled_courses = await tracker.get_enrolled_courses(session.user_id)
    enrolled = await with_lessons(store, enrolled_courses, session.user_id)

    recommended = await list_courses_excluding(store, [c.id for c in enrolled])

    return {
        "role": Role.STUDENT.value,
        "stats": student_stats(enrolled, session.user_id).model_dump(),
        "enrolled_courses": [
            c.model_dump() for c in sorted(enrolled, key=lambda c: c.progress, reverse=True)
        ],
        "recommended_courses": [c.model_dump() for c in recommended],
    }


async def teacher_dashboard(store, session: Session) -> dict:
    own = await with_lessons(store, await list_courses_by_creator(store, session.user_id))
    return {
        "role": Role.TEACHER.value,
        "stats": teacher_stats(own).model_dump(),
        "courses": [c.model_dump() for c in own],
    }


async def admin_dashboard(store, session: Session) -> dict:
    users = await get_all_users(store)
    courses = await with_lessons(store, await list_courses(store))
    stats = admin_stats(users, courses, settings.RECENT_ITEMS_LIMIT)
    return {
        "role": Role.ADMIN.value,
        "stats": stats.model_dump(),
    }


DASHBOARDS: Dict[Role, Callable[..., Awaitable[dict]]] = {
    Role.STUDENT: student_dashboard,
    Role.TEACHER: teacher_dashboard,
    Role.ADMIN: admin_dashboard,
}


async def get_dashboard(store, session: Session) -> dict:
    """Dispatch on the session's role"""
    return await DASHBOARDS[session.role](store, session)
