"""
Tests for the course/lesson navigation state machine.
"""

import pytest

from elearn.core.errors import InvalidTransition
from elearn.courses.database import (
    create_course, create_lesson, delete_course, delete_lesson, find_lesson
)
from elearn.courses.enrollment import EnrollmentTracker
from elearn.courses.navigation import NavigationState, Navigator, View


class TestNavigationState:

    def test_to_dict(self):
        state = NavigationState.lesson_view("c1", "l1")
        assert state.to_dict() == {"view": "lesson_view", "course_id": "c1", "lesson_id": "l1"}

    def test_starts_on_course_list(self, store):
        assert Navigator(store, "u1").state == NavigationState.course_list()


class TestTransitions:

    async def test_browse_complete_and_return(self, store, student, course, lessons):
        nav = Navigator(store, student.id)

        state = await nav.select_course(course.id)
        assert state == NavigationState.course_detail(course.id)

        state = await nav.select_lesson(lessons[0].id)
        assert state == NavigationState.lesson_view(course.id, lessons[0].id)

        state = await nav.complete()
        assert state == NavigationState.course_detail(course.id)

        lesson = await find_lesson(store, lessons[0].id)
        assert lesson.is_completed_by(student.id)

        enrollment = await EnrollmentTracker(store).get_enrollment(student.id, course.id)
        assert enrollment.progress == 25

        state = await nav.back()
        assert state.view == View.COURSE_LIST

    async def test_completing_every_lesson_completes_course(self, store, student, course, lessons):
        nav = Navigator(store, student.id)
        await nav.select_course(course.id)
        for lesson in lessons:
            await nav.select_lesson(lesson.id)
            await nav.complete()

        enrollment = await EnrollmentTracker(store).get_enrollment(student.id, course.id)
        assert enrollment.progress == 100
        assert enrollment.is_completed
        user = await store.get("users", student.id)
        assert user["completed_lessons_count"] == 4
        assert user["completed_courses_count"] == 1

    async def test_new_lesson_reopens_completed_course(self, store, student, course, lessons):
        nav = Navigator(store, student.id)
        await nav.select_course(course.id)
        for lesson in lessons:
            await nav.select_lesson(lesson.id)
            await nav.complete()

        extra = await create_lesson(store, course.id, {"title": "Lesson 5", "order": 5})

        tracker = EnrollmentTracker(store)
        enrollment = await tracker.get_enrollment(student.id, course.id)
        assert enrollment.progress == 80
        assert enrollment.is_completed is False
        user = await store.get("users", student.id)
        assert user["completed_courses_count"] == 0

        await delete_lesson(store, extra.id)

        enrollment = await tracker.get_enrollment(student.id, course.id)
        assert enrollment.progress == 100
        assert enrollment.is_completed
        user = await store.get("users", student.id)
        assert user["completed_courses_count"] == 1

    async def test_deleting_unfinished_lesson_raises_progress(self, store, student, course, lessons):
        nav = Navigator(store, student.id)
        await nav.select_course(course.id)
        for lesson in lessons[:3]:
            await nav.select_lesson(lesson.id)
            await nav.complete()

        await delete_lesson(store, lessons[3].id)

        enrollment = await EnrollmentTracker(store).get_enrollment(student.id, course.id)
        assert enrollment.progress == 100
        assert enrollment.is_completed

    async def test_back_from_lesson_goes_to_course(self, store, student, course, lessons):
        nav = Navigator(store, student.id)
        await nav.select_course(course.id)
        await nav.select_lesson(lessons[1].id)

        state = await nav.back()
        assert state == NavigationState.course_detail(course.id)

    async def test_back_on_course_list_stays(self, store):
        nav = Navigator(store, "u1")
        assert (await nav.back()).view == View.COURSE_LIST

    async def test_reset(self, store, student, course, lessons):
        nav = Navigator(store, student.id)
        await nav.select_course(course.id)
        await nav.select_lesson(lessons[0].id)

        assert nav.reset() == NavigationState.course_list()


class TestInvalidTransitions:

    async def test_select_lesson_from_course_list(self, store, lessons):
        with pytest.raises(InvalidTransition):
            await Navigator(store, "u1").select_lesson(lessons[0].id)

    async def test_complete_outside_lesson_view(self, store, student, course):
        nav = Navigator(store, student.id)
        await nav.select_course(course.id)
        with pytest.raises(InvalidTransition):
            await nav.complete()

    async def test_select_course_from_course_detail(self, store, course):
        nav = Navigator(store, "u1")
        await nav.select_course(course.id)
        with pytest.raises(InvalidTransition):
            await nav.select_course(course.id)


class TestFallbacks:

    async def test_unknown_course_stays_on_list(self, store):
        nav = Navigator(store, "u1")
        assert (await nav.select_course("missing")).view == View.COURSE_LIST

    async def test_lesson_of_another_course_stays_on_course(self, store, teacher, course, lessons):
        other = await create_course(store, {"title": "Chemistry"}, teacher.id)
        foreign = await create_lesson(store, other.id, {"title": "Atoms", "order": 1})

        nav = Navigator(store, "u1")
        await nav.select_course(course.id)
        state = await nav.select_lesson(foreign.id)
        assert state == NavigationState.course_detail(course.id)

    async def test_lesson_deleted_before_complete(self, store, student, course, lessons):
        nav = Navigator(store, student.id)
        await nav.select_course(course.id)
        await nav.select_lesson(lessons[0].id)
        await delete_lesson(store, lessons[0].id)

        state = await nav.complete()
        assert state == NavigationState.course_detail(course.id)
        assert await EnrollmentTracker(store).get_enrollment(student.id, course.id) is None

    async def test_course_deleted_while_viewing(self, store, student, course, lessons):
        nav = Navigator(store, student.id)
        await nav.select_course(course.id)
        await nav.select_lesson(lessons[0].id)
        await delete_course(store, course.id)

        state = await nav.complete()
        assert state.view == View.COURSE_LIST
