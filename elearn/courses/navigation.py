"""
Navigator - course list / course detail / lesson view state machine.

    CourseList --select_course(c)--> CourseDetail(c)
    CourseDetail(c) --select_lesson(l)--> LessonView(c, l)
    LessonView(c, l) --back | complete--> CourseDetail(c)
    CourseDetail(c) --back--> CourseList

A course or lesson that disappeared underneath the session is not an error
here: the navigator falls back to CourseList (course gone) or CourseDetail
(lesson gone). Calling a transition from a state that does not offer it
raises InvalidTransition.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from elearn.core.errors import InvalidTransition
from elearn.courses.database import find_course, find_lesson, set_lesson_completion
from elearn.courses.enrollment import EnrollmentTracker

logger = logging.getLogger(__name__)


class View(str, Enum):
    COURSE_LIST = "course_list"
    COURSE_DETAIL = "course_detail"
    LESSON_VIEW = "lesson_view"


@dataclass(frozen=True)
class NavigationState:
    view: View
    course_id: Optional[str] = None
    lesson_id: Optional[str] = None

    @classmethod
    def course_list(cls) -> "NavigationState":
        return cls(View.COURSE_LIST)

    @classmethod
    def course_detail(cls, course_id: str) -> "NavigationState":
        return cls(View.COURSE_DETAIL, course_id)

    @classmethod
    def lesson_view(cls, course_id: str, lesson_id: str) -> "NavigationState":
        return cls(View.LESSON_VIEW, course_id, lesson_id)

    def to_dict(self) -> dict:
        return {"view": self.view.value, "course_id": self.course_id, "lesson_id": self.lesson_id}


class Navigator:
    """
    Per-session navigation over courses and lessons.

    Args:
        store: document store
        user_id: the session's user; lesson completion is recorded for them
        tracker: enrollment tracker used by complete()
    """

    def __init__(self, store, user_id: str, tracker: Optional[EnrollmentTracker] = None):
        self.store = store
        self.user_id = user_id
        self.tracker = tracker or EnrollmentTracker(store)
        self.state = NavigationState.course_list()

    def _require(self, *views: View, action: str):
        if self.state.view not in views:
            raise InvalidTransition(f"Cannot {action} from {self.state.view.value}")

    async def _fallback_for_lesson(self, course_id: str, lesson_id: str):
        """Resolve the lesson, or move to where the session can continue"""
        if await find_course(self.store, course_id) is None:
            logger.info(f"Course {course_id} vanished; returning to course list")
            self.state = NavigationState.course_list()
            return None

        lesson = await find_lesson(self.store, lesson_id)
        if lesson is None or lesson.course_id != course_id:
            logger.info(f"Lesson {lesson_id} not in course {course_id}; returning to course")
            self.state = NavigationState.course_detail(course_id)
            return None
        return lesson

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def select_course(self, course_id: str) -> NavigationState:
        self._require(View.COURSE_LIST, action="select a course")

        if await find_course(self.store, course_id) is None:
            logger.info(f"Course {course_id} not found; staying on course list")
            return self.state

        self.state = NavigationState.course_detail(course_id)
        return self.state

    async def select_lesson(self, lesson_id: str) -> NavigationState:
        self._require(View.COURSE_DETAIL, action="select a lesson")

        course_id = self.state.course_id
        if await self._fallback_for_lesson(course_id, lesson_id) is None:
            return self.state

        self.state = NavigationState.lesson_view(course_id, lesson_id)
        return self.state

    async def back(self) -> NavigationState:
        if self.state.view == View.LESSON_VIEW:
            self.state = NavigationState.course_detail(self.state.course_id)
        elif self.state.view == View.COURSE_DETAIL:
            self.state = NavigationState.course_list()
        return self.state

    async def complete(self) -> NavigationState:
        """
        Mark the current lesson completed, refresh the enrollment's progress
        and return to the course.

        Store failures propagate and leave the state unchanged.
        """
        self._require(View.LESSON_VIEW, action="complete a lesson")

        course_id, lesson_id = self.state.course_id, self.state.lesson_id
        if await self._fallback_for_lesson(course_id, lesson_id) is None:
            return self.state

        await set_lesson_completion(self.store, lesson_id, self.user_id, True)
        await self.tracker.enroll(self.user_id, course_id)
        await self.tracker.refresh_progress(self.user_id, course_id)

        self.state = NavigationState.course_detail(course_id)
        return self.state

    def reset(self) -> NavigationState:
        """Back to the course list, as on logout"""
        self.state = NavigationState.course_list()
        return self.state
