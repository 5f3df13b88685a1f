"""
Dashboard statistics per role.

Pure reads over data the service layer already fetched; nothing here touches
the store or mutates its inputs.
"""

from datetime import datetime
from typing import List, Sequence

from pydantic import BaseModel

from elearn.courses.models import Course, CourseWithLessons
from elearn.courses.progress import count_completed_lessons
from elearn.users.user_models import Role, UserProfile

DEFAULT_RECENT_LIMIT = 5

# ==================== RESULT MODELS ====================

class StudentStats(BaseModel):
    courses_in_progress: int = 0
    courses_completed: int = 0
    total_lessons_completed: int = 0
    average_progress: int = 0


class TeacherStats(BaseModel):
    total_courses: int = 0
    total_lessons: int = 0
    total_students: int = 0


class AdminStats(BaseModel):
    total_users: int = 0
    total_students: int = 0
    total_teachers: int = 0
    total_admins: int = 0
    total_courses: int = 0
    total_lessons: int = 0
    recent_users: List[UserProfile] = []
    recent_courses: List[Course] = []

# ==================== AGGREGATIONS ====================

def student_stats(enrolled: Sequence[CourseWithLessons], user_id: str) -> StudentStats:
    """
    Args:
        enrolled: the student's enrolled courses with lessons and progress
        user_id: the student
    """
    if not enrolled:
        return StudentStats()

    total_progress = sum(c.progress for c in enrolled)
    return StudentStats(
        courses_in_progress=sum(1 for c in enrolled if 0 < c.progress < 100),
        courses_completed=sum(1 for c in enrolled if c.progress == 100),
        total_lessons_completed=sum(count_completed_lessons(c.lessons, user_id) for c in enrolled),
        average_progress=(2 * total_progress + len(enrolled)) // (2 * len(enrolled)),
    )


def teacher_stats(courses: Sequence[CourseWithLessons]) -> TeacherStats:
    """
    Args:
        courses: the teacher's own courses with lessons

    total_students is distinct reach: every user who completed at least one
    lesson of any of these courses.
    """
    students = set()
    for course in courses:
        for lesson in course.lessons:
            students.update(lesson.completed_by)

    return TeacherStats(
        total_courses=len(courses),
        total_lessons=sum(len(c.lessons) for c in courses),
        total_students=len(students),
    )


def most_recent(items: Sequence, limit: int = DEFAULT_RECENT_LIMIT) -> list:
    """
    Newest first by created_at; equal timestamps ordered by id, undated
    items last.
    """
    by_id = sorted(items, key=lambda item: item.id)
    dated = [item for item in by_id if item.created_at is not None]
    undated = [item for item in by_id if item.created_at is None]
    dated.sort(key=lambda item: _timestamp(item.created_at), reverse=True)
    return (dated + undated)[:limit]


def _timestamp(value: datetime) -> float:
    # naive values are UTC throughout the platform
    if value.tzinfo is None:
        return (value - datetime(1970, 1, 1)).total_seconds()
    return value.timestamp()


def admin_stats(
    users: Sequence[UserProfile],
    courses: Sequence[CourseWithLessons],
    recent_limit: int = DEFAULT_RECENT_LIMIT,
) -> AdminStats:
    return AdminStats(
        total_users=len(users),
        total_students=sum(1 for u in users if u.role == Role.STUDENT),
        total_teachers=sum(1 for u in users if u.role == Role.TEACHER),
        total_admins=sum(1 for u in users if u.role == Role.ADMIN),
        total_courses=len(courses),
        total_lessons=sum(len(c.lessons) for c in courses),
        recent_users=most_recent(users, recent_limit),
        recent_courses=[
            Course(**c.model_dump(exclude={"lessons", "progress"}))
            for c in most_recent(courses, recent_limit)
        ],
    )
