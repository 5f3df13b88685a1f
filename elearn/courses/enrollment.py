"""
Enrollment tracking.

Keeps the per (user, course) Enrollment document and the user's
enrolled_courses list consistent, and counts course completions.

Callers sequence their own calls: within a session `enroll` is awaited before
any `record_progress` for the same course. Concurrent progress updates for the
same pair are last-write-wins on progress; the completion counter is guarded
by a conditional update so duplicate or reordered completion signals count
once. completed_courses_count is the number of enrollments currently at 100:
dropping below 100 (a lesson added, a lesson reopened) takes the course back
out of it.
"""

import logging
from typing import List, Optional

from elearn.core.database import COURSES, ENROLLMENTS, USERS, utcnow
from elearn.core.errors import (
    CourseNotFound, EnrollmentNotFound, InvalidProgressValue, UserNotFound
)
from elearn.courses.database import get_course_lessons, get_courses_by_ids
from elearn.courses.models import Course, Enrollment
from elearn.courses.progress import calculate_course_progress

logger = logging.getLogger(__name__)


def enrollment_id(user_id: str, course_id: str) -> str:
    return f"{user_id}_{course_id}"


def validate_progress(progress) -> int:
    """Reject anything that is not an integer percentage"""
    if isinstance(progress, bool) or not isinstance(progress, int):
        raise InvalidProgressValue(progress)
    if not 0 <= progress <= 100:
        raise InvalidProgressValue(progress)
    return progress


class EnrollmentTracker:
    """Enrollment operations against the document store"""

    def __init__(self, store):
        self.store = store

    async def _require_user(self, user_id: str) -> dict:
        user = await self.store.get(USERS, user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    async def _require_course(self, course_id: str) -> dict:
        course = await self.store.get(COURSES, course_id)
        if course is None:
            raise CourseNotFound(course_id)
        return course

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def enroll(self, user_id: str, course_id: str) -> Enrollment:
        """
        Enroll a user in a course. Enrolling twice is a no-op.

        Raises:
            UserNotFound, CourseNotFound
        """
        user = await self._require_user(user_id)
        await self._require_course(course_id)

        enrolled = user.get("enrolled_courses") or []
        if course_id in enrolled:
            existing = await self.get_enrollment(user_id, course_id)
            if existing is not None:
                return existing
            # enrolled_courses was written but the enrollment was not; finish it
            logger.warning(f"Repairing missing enrollment for {user_id} in {course_id}")
        else:
            await self.store.add_to_set(USERS, user_id, "enrolled_courses", course_id)

        now = utcnow()
        enrollment = {
            "user_id": user_id,
            "course_id": course_id,
            "progress": 0,
            "is_completed": False,
            "enrolled_at": now,
            "last_accessed_at": now,
        }
        key = enrollment_id(user_id, course_id)
        await self.store.set(ENROLLMENTS, key, enrollment)
        logger.info(f"User {user_id} enrolled in {course_id}")
        return Enrollment(id=key, **enrollment)

    async def record_progress(self, user_id: str, course_id: str, progress: int) -> Enrollment:
        """
        Store course progress. The user's completed_courses_count goes up on
        the transition to 100 and back down when a completed course drops
        below it.

        Raises:
            InvalidProgressValue: before any store access
            UserNotFound, CourseNotFound, EnrollmentNotFound
        """
        validate_progress(progress)
        await self._require_user(user_id)
        await self._require_course(course_id)

        key = enrollment_id(user_id, course_id)
        if await self.store.get(ENROLLMENTS, key) is None:
            raise EnrollmentNotFound(key)

        fields = {
            "progress": progress,
            "is_completed": progress == 100,
            "last_accessed_at": utcnow(),
        }

        # Only the write that flips is_completed moves the counter
        completed = progress == 100
        flipped = await self.store.update(ENROLLMENTS, key, fields, where={"is_completed": not completed})
        if flipped:
            await self.store.increment(USERS, user_id, "completed_courses_count", 1 if completed else -1)
            if completed:
                logger.info(f"User {user_id} completed course {course_id}")
            else:
                logger.info(f"Course {course_id} reopened for {user_id} at {progress}%")
        else:
            await self.store.update(ENROLLMENTS, key, fields)

        return await self.get_enrollment(user_id, course_id)

    async def refresh_progress(self, user_id: str, course_id: str) -> Optional[Enrollment]:
        """
        Recompute progress from the course's completion sets and record it.
        Returns None when the user is not enrolled.
        """
        if await self.get_enrollment(user_id, course_id) is None:
            return None
        lessons = await get_course_lessons(self.store, course_id)
        return await self.record_progress(user_id, course_id, calculate_course_progress(lessons, user_id))

    async def refresh_course(self, course_id: str) -> List[Enrollment]:
        """Recompute progress for every enrollment in a course"""
        docs = await self.store.query(ENROLLMENTS, {"course_id": course_id})
        if not docs:
            return []

        lessons = await get_course_lessons(self.store, course_id)
        refreshed = []
        for doc in docs:
            progress = calculate_course_progress(lessons, doc["user_id"])
            if progress != doc.get("progress"):
                refreshed.append(await self.record_progress(doc["user_id"], course_id, progress))
        return refreshed

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_enrollment(self, user_id: str, course_id: str) -> Optional[Enrollment]:
        doc = await self.store.get(ENROLLMENTS, enrollment_id(user_id, course_id))
        return Enrollment(**doc) if doc else None

    async def get_user_enrollments(self, user_id: str) -> List[Enrollment]:
        docs = await self.store.query(ENROLLMENTS, {"user_id": user_id})
        return [Enrollment(**doc) for doc in docs]

    async def is_enrolled(self, user_id: str, course_id: str) -> bool:
        user = await self._require_user(user_id)
        return course_id in (user.get("enrolled_courses") or [])

    async def get_enrolled_courses(self, user_id: str) -> List[Course]:
        """Courses from the user's enrolled_courses, in enrollment order"""
        user = await self._require_user(user_id)
        course_ids = user.get("enrolled_courses") or []
        by_id = {c.id: c for c in await get_courses_by_ids(self.store, course_ids)}
        return [by_id[cid] for cid in course_ids if cid in by_id]
