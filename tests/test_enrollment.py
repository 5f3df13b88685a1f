"""
Tests for enrollment tracking and the completion counter.
"""

import pytest

from elearn.core.database import ENROLLMENTS, USERS
from elearn.core.errors import (
    CourseNotFound, EnrollmentNotFound, InvalidProgressValue, UserNotFound
)
from elearn.courses.database import create_course, set_lesson_completion
from elearn.courses.enrollment import EnrollmentTracker, enrollment_id, validate_progress


class TestValidateProgress:

    def test_accepts_bounds(self):
        assert validate_progress(0) == 0
        assert validate_progress(100) == 100

    @pytest.mark.parametrize("value", [-1, 101, 50.0, "50", None, True])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidProgressValue):
            validate_progress(value)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_progress(150)


class TestEnroll:

    async def test_creates_enrollment_and_list_entry(self, store, student, course):
        tracker = EnrollmentTracker(store)
        enrollment = await tracker.enroll(student.id, course.id)

        assert enrollment.id == enrollment_id(student.id, course.id)
        assert enrollment.progress == 0
        assert enrollment.is_completed is False

        user = await store.get(USERS, student.id)
        assert user["enrolled_courses"] == [course.id]

    async def test_enrolling_twice_is_a_no_op(self, store, student, course):
        tracker = EnrollmentTracker(store)
        first = await tracker.enroll(student.id, course.id)
        await tracker.record_progress(student.id, course.id, 40)
        second = await tracker.enroll(student.id, course.id)

        assert second.id == first.id
        assert second.progress == 40
        user = await store.get(USERS, student.id)
        assert user["enrolled_courses"] == [course.id]

    async def test_repairs_missing_enrollment_document(self, store, student, course):
        await store.add_to_set(USERS, student.id, "enrolled_courses", course.id)

        enrollment = await EnrollmentTracker(store).enroll(student.id, course.id)

        assert enrollment.progress == 0
        assert await store.get(ENROLLMENTS, enrollment.id) is not None

    async def test_unknown_user(self, store, course):
        with pytest.raises(UserNotFound):
            await EnrollmentTracker(store).enroll("ghost", course.id)

    async def test_unknown_course(self, store, student):
        with pytest.raises(CourseNotFound):
            await EnrollmentTracker(store).enroll(student.id, "missing")


class TestRecordProgress:

    async def test_updates_progress(self, store, student, course):
        tracker = EnrollmentTracker(store)
        await tracker.enroll(student.id, course.id)

        enrollment = await tracker.record_progress(student.id, course.id, 75)

        assert enrollment.progress == 75
        assert enrollment.is_completed is False

    async def test_completion_counted_once(self, store, student, course):
        tracker = EnrollmentTracker(store)
        await tracker.enroll(student.id, course.id)

        first = await tracker.record_progress(student.id, course.id, 100)
        second = await tracker.record_progress(student.id, course.id, 100)

        assert first.is_completed and second.is_completed
        user = await store.get(USERS, student.id)
        assert user["completed_courses_count"] == 1

    async def test_dropping_below_100_reopens(self, store, student, course):
        tracker = EnrollmentTracker(store)
        await tracker.enroll(student.id, course.id)
        await tracker.record_progress(student.id, course.id, 100)

        enrollment = await tracker.record_progress(student.id, course.id, 50)
        assert enrollment.is_completed is False
        user = await store.get(USERS, student.id)
        assert user["completed_courses_count"] == 0

        await tracker.record_progress(student.id, course.id, 40)
        user = await store.get(USERS, student.id)
        assert user["completed_courses_count"] == 0

        await tracker.record_progress(student.id, course.id, 100)
        user = await store.get(USERS, student.id)
        assert user["completed_courses_count"] == 1

    async def test_invalid_value_writes_nothing(self, store, student, course):
        tracker = EnrollmentTracker(store)
        await tracker.enroll(student.id, course.id)

        with pytest.raises(InvalidProgressValue):
            await tracker.record_progress(student.id, course.id, 101)

        enrollment = await tracker.get_enrollment(student.id, course.id)
        assert enrollment.progress == 0

    async def test_invalid_value_checked_before_lookups(self, store):
        with pytest.raises(InvalidProgressValue):
            await EnrollmentTracker(store).record_progress("ghost", "missing", -5)

    async def test_requires_enrollment(self, store, student, course):
        with pytest.raises(EnrollmentNotFound):
            await EnrollmentTracker(store).record_progress(student.id, course.id, 10)

    async def test_unknown_user_and_course(self, store, student, course):
        tracker = EnrollmentTracker(store)
        with pytest.raises(UserNotFound):
            await tracker.record_progress("ghost", course.id, 10)
        with pytest.raises(CourseNotFound):
            await tracker.record_progress(student.id, "missing", 10)


class TestRefreshProgress:

    async def test_recomputes_from_lessons(self, store, student, course, lessons):
        tracker = EnrollmentTracker(store)
        await tracker.enroll(student.id, course.id)
        await set_lesson_completion(store, lessons[0].id, student.id, True)
        await set_lesson_completion(store, lessons[1].id, student.id, True)

        enrollment = await tracker.refresh_progress(student.id, course.id)

        assert enrollment.progress == 50

    async def test_not_enrolled_returns_none(self, store, student, course, lessons):
        assert await EnrollmentTracker(store).refresh_progress(student.id, course.id) is None

    async def test_refresh_course_touches_only_changed_enrollments(self, store, student, admin, course, lessons):
        tracker = EnrollmentTracker(store)
        await tracker.enroll(student.id, course.id)
        await tracker.enroll(admin.id, course.id)
        await set_lesson_completion(store, lessons[0].id, student.id, True)

        refreshed = await tracker.refresh_course(course.id)

        assert [e.user_id for e in refreshed] == [student.id]
        assert (await tracker.get_enrollment(student.id, course.id)).progress == 25
        assert (await tracker.get_enrollment(admin.id, course.id)).progress == 0

    async def test_refresh_course_without_enrollments(self, store, course, lessons):
        assert await EnrollmentTracker(store).refresh_course(course.id) == []


class TestEnrollmentReads:

    async def test_enrolled_courses_keep_enrollment_order(self, store, student, teacher):
        tracker = EnrollmentTracker(store)
        first = await create_course(store, {"title": "First"}, teacher.id)
        second = await create_course(store, {"title": "Second"}, teacher.id)
        await tracker.enroll(student.id, second.id)
        await tracker.enroll(student.id, first.id)

        courses = await tracker.get_enrolled_courses(student.id)
        assert [c.id for c in courses] == [second.id, first.id]
        assert len(await tracker.get_user_enrollments(student.id)) == 2
        assert await tracker.is_enrolled(student.id, first.id)

    async def test_missing_enrollment_reads_as_none(self, store, student, course):
        assert await EnrollmentTracker(store).get_enrollment(student.id, course.id) is None
