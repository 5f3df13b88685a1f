from elearn.auth.session import Session
from elearn.core.errors import PermissionDenied
from elearn.courses.database import get_course, get_lesson
from elearn.courses.models import Course, Lesson


async def verify_course_ownership(store, course_id: str, session: Session) -> Course:
    """
    Validates the session may edit this course: its creator or an admin

    Raises:
        CourseNotFound
        PermissionDenied: Not the owner
    """
    course = await get_course(store, course_id)

    if not session.is_admin and course.created_by != session.user_id:
        raise PermissionDenied("Not authorized to modify this course")

    return course


async def verify_lesson_ownership(store, lesson_id: str, session: Session) -> Lesson:
    """Validates the session owns the course this lesson belongs to"""
    lesson = await get_lesson(store, lesson_id)
    await verify_course_ownership(store, lesson.course_id, session)
    return lesson
