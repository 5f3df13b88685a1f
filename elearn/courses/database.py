import logging
import re
from typing import List, Optional

from pymongo import ASCENDING, DESCENDING

from elearn.core.database import COURSES, LESSONS, USERS, generate_id, utcnow
from elearn.core.errors import (
    CourseNotFound, LessonNotFound, LessonOrderConflict, QuizNotFound, UserNotFound
)
from elearn.courses.models import Course, Lesson

logger = logging.getLogger(__name__)

# ==================== COURSE CRUD ====================

async def create_course(store, course_data: dict, creator_id: str) -> Course:
    """Create new course owned by creator_id"""
    course_id = generate_id("CRS")
    now = utcnow()

    course = {
        "title": course_data["title"],
        "description": course_data.get("description", ""),
        "estimated_time": course_data.get("estimated_time"),
        "image_url": course_data.get("image_url"),
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }

    await store.set(COURSES, course_id, course)
    logger.info(f"Course {course_id} created by {creator_id}")
    return Course(id=course_id, **course)


async def find_course(store, course_id: str) -> Optional[Course]:
    doc = await store.get(COURSES, course_id)
    return Course(**doc) if doc else None


async def get_course(store, course_id: str) -> Course:
    """Get course by ID or raise CourseNotFound"""
    course = await find_course(store, course_id)
    if course is None:
        raise CourseNotFound(course_id)
    return course


async def list_courses(store, limit: Optional[int] = None) -> List[Course]:
    """All courses, newest first"""
    docs = await store.query(COURSES, order=[("created_at", DESCENDING)], limit=limit)
    return [Course(**doc) for doc in docs]


async def list_courses_by_creator(store, creator_id: str) -> List[Course]:
    docs = await store.query(
        COURSES, {"created_by": creator_id}, order=[("created_at", DESCENDING)]
    )
    return [Course(**doc) for doc in docs]


async def get_courses_by_ids(store, course_ids: List[str]) -> List[Course]:
    """Fetch a set of courses in one query; unknown ids are skipped"""
    if not course_ids:
        return []
    docs = await store.query(COURSES, {"_id": {"$in": list(course_ids)}})
    return [Course(**doc) for doc in docs]


async def search_courses(store, term: str) -> List[Course]:
    """Case-insensitive match on title or description, evaluated by the store"""
    needle = term.strip()
    if not needle:
        return await list_courses(store)

    pattern = {"$regex": re.escape(needle), "$options": "i"}
    docs = await store.query(
        COURSES,
        {"$or": [{"title": pattern}, {"description": pattern}]},
        order=[("created_at", DESCENDING)],
    )
    return [Course(**doc) for doc in docs]


async def list_courses_excluding(store, course_ids: List[str]) -> List[Course]:
    """Courses not in course_ids, newest first"""
    filters = {"_id": {"$nin": list(course_ids)}} if course_ids else None
    docs = await store.query(COURSES, filters, order=[("created_at", DESCENDING)])
    return [Course(**doc) for doc in docs]


async def update_course(store, course_id: str, updates: dict) -> Course:
    updates = {k: v for k, v in updates.items() if k not in ("id", "created_by", "created_at")}
    updates["updated_at"] = utcnow()

    if not await store.update(COURSES, course_id, updates):
        raise CourseNotFound(course_id)
    return await get_course(store, course_id)


async def delete_course(store, course_id: str) -> int:
    """
    Delete a course and every lesson under it.

    Returns:
        Number of lessons removed with the course
    """
    await get_course(store, course_id)

    removed = await store.delete_many(LESSONS, {"course_id": course_id})
    await store.delete(COURSES, course_id)
    logger.info(f"Course {course_id} deleted with {removed} lesson(s)")
    return removed

# ==================== LESSON CRUD ====================

async def _ensure_order_free(store, course_id: str, order: int, lesson_id: Optional[str] = None):
    clashes = await store.query(LESSONS, {"course_id": course_id, "order": order})
    if any(doc["id"] != lesson_id for doc in clashes):
        raise LessonOrderConflict(course_id, order)


async def create_lesson(store, course_id: str, lesson_data: dict) -> Lesson:
    """Create a lesson under an existing course"""
    await get_course(store, course_id)
    await _ensure_order_free(store, course_id, lesson_data["order"])

    lesson_id = generate_id("LSN")
    now = utcnow()

    lesson = {
        "course_id": course_id,
        "title": lesson_data["title"],
        "description": lesson_data.get("description", ""),
        "order": lesson_data["order"],
        "content": lesson_data.get("content", []),
        "duration_minutes": lesson_data.get("duration_minutes", 0),
        "video_url": lesson_data.get("video_url"),
        "completed_by": [],
        "created_at": now,
        "updated_at": now,
    }

    await store.set(LESSONS, lesson_id, lesson)
    logger.info(f"Lesson {lesson_id} created in course {course_id}")

    await _refresh_course_enrollments(store, course_id)
    return Lesson(id=lesson_id, **lesson)


async def find_lesson(store, lesson_id: str) -> Optional[Lesson]:
    doc = await store.get(LESSONS, lesson_id)
    return Lesson(**doc) if doc else None


async def get_lesson(store, lesson_id: str) -> Lesson:
    lesson = await find_lesson(store, lesson_id)
    if lesson is None:
        raise LessonNotFound(lesson_id)
    return lesson


async def get_course_lessons(store, course_id: str) -> List[Lesson]:
    """Lessons of a course in display order"""
    docs = await store.query(LESSONS, {"course_id": course_id}, order=[("order", ASCENDING)])
    lessons = [Lesson(**doc) for doc in docs]
    lessons.sort(key=lambda lesson: (lesson.order, lesson.id))
    return lessons


async def update_lesson(store, lesson_id: str, updates: dict) -> Lesson:
    lesson = await get_lesson(store, lesson_id)

    updates = {
        k: v for k, v in updates.items()
        if k not in ("id", "course_id", "completed_by", "created_at")
    }
    if "order" in updates and updates["order"] != lesson.order:
        await _ensure_order_free(store, lesson.course_id, updates["order"], lesson_id)
    updates["updated_at"] = utcnow()

    if not await store.update(LESSONS, lesson_id, updates):
        raise LessonNotFound(lesson_id)
    return await get_lesson(store, lesson_id)


async def delete_lesson(store, lesson_id: str) -> None:
    lesson = await get_lesson(store, lesson_id)
    if not await store.delete(LESSONS, lesson_id):
        raise LessonNotFound(lesson_id)
    logger.info(f"Lesson {lesson_id} deleted")

    await _refresh_course_enrollments(store, lesson.course_id)


async def _refresh_course_enrollments(store, course_id: str) -> None:
    """Lesson set changed: recompute every enrollment's cached progress"""
    # enrollment builds on this module
    from elearn.courses.enrollment import EnrollmentTracker

    refreshed = await EnrollmentTracker(store).refresh_course(course_id)
    if refreshed:
        logger.info(f"Refreshed progress of {len(refreshed)} enrollment(s) in {course_id}")


async def set_lesson_completion(store, lesson_id: str, user_id: str, completed: bool) -> bool:
    """
    Add or remove user_id in the lesson's completion set.

    The user's completed_lessons_count moves only when the set actually
    changed, so repeated calls are harmless.

    Returns:
        True when the completion set changed
    """
    await get_lesson(store, lesson_id)
    if await store.get(USERS, user_id) is None:
        raise UserNotFound(user_id)

    if completed:
        changed = await store.add_to_set(LESSONS, lesson_id, "completed_by", user_id)
    else:
        changed = await store.pull(LESSONS, lesson_id, "completed_by", user_id)

    if changed:
        await store.update(LESSONS, lesson_id, {"updated_at": utcnow()})
        await store.increment(USERS, user_id, "completed_lessons_count", 1 if completed else -1)
        logger.info(f"Lesson {lesson_id} {'completed' if completed else 'reopened'} by {user_id}")
    return changed

# ==================== QUIZZES ====================

async def submit_quiz_answer(store, lesson_id: str, quiz_id: str, answer: str) -> bool:
    """
    Check an answer against the lesson's quiz.

    Does not complete the lesson; completion is an explicit action.
    """
    lesson = await get_lesson(store, lesson_id)
    quiz = lesson.find_quiz(quiz_id)
    if quiz is None:
        raise QuizNotFound(quiz_id)
    return answer == quiz.correct_answer
