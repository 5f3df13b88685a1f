"""
Tests for dashboard statistics and role dispatch.
"""

from datetime import datetime, timedelta

from elearn.auth.session import Session
from elearn.courses.database import create_course, set_lesson_completion
from elearn.courses.enrollment import EnrollmentTracker
from elearn.courses.models import CourseWithLessons, Lesson
from elearn.dashboards.aggregator import admin_stats, most_recent, student_stats, teacher_stats
from elearn.dashboards.dashboard_service import DASHBOARDS, get_dashboard
from elearn.users.user_models import Role, UserProfile

T0 = datetime(2024, 1, 1)


def lesson(lesson_id: str, completed_by=()):
    return Lesson(id=lesson_id, course_id="c", title=lesson_id, order=0, completed_by=list(completed_by))


def course(course_id: str, progress: int = 0, lessons=(), created_at=None):
    return CourseWithLessons(
        id=course_id, title=course_id, description="", lessons=list(lessons),
        progress=progress, created_at=created_at,
    )


def user(user_id: str, role: Role, created_at=None):
    return UserProfile(id=user_id, name=user_id, email=f"{user_id}@example.com", role=role, created_at=created_at)


class TestStudentStats:

    def test_no_enrollments(self):
        stats = student_stats([], "u1")
        assert stats.courses_in_progress == 0
        assert stats.average_progress == 0

    def test_counts_by_progress(self):
        enrolled = [
            course("a", 100, [lesson("a1", ["u1"]), lesson("a2", ["u1"])]),
            course("b", 50, [lesson("b1", ["u1"]), lesson("b2")]),
            course("c", 0, [lesson("c1")]),
        ]
        stats = student_stats(enrolled, "u1")

        assert stats.courses_completed == 1
        assert stats.courses_in_progress == 1
        assert stats.total_lessons_completed == 3
        assert stats.average_progress == 50

    def test_average_rounds_half_up(self):
        enrolled = [course("a", 25), course("b", 50)]
        assert student_stats(enrolled, "u1").average_progress == 38


class TestTeacherStats:

    def test_students_are_distinct(self):
        courses = [
            course("a", lessons=[lesson("a1", ["s1", "s2"]), lesson("a2", ["s1"])]),
            course("b", lessons=[lesson("b1", ["s2", "s3"])]),
        ]
        stats = teacher_stats(courses)

        assert stats.total_courses == 2
        assert stats.total_lessons == 3
        assert stats.total_students == 3

    def test_empty(self):
        assert teacher_stats([]).total_students == 0


class TestAdminStats:

    def test_role_totals(self):
        users = [
            user("s1", Role.STUDENT), user("s2", Role.STUDENT),
            user("t1", Role.TEACHER), user("a1", Role.ADMIN),
        ]
        courses = [course("c1", lessons=[lesson("l1"), lesson("l2")])]
        stats = admin_stats(users, courses)

        assert stats.total_users == 4
        assert stats.total_students == 2
        assert stats.total_teachers == 1
        assert stats.total_admins == 1
        assert stats.total_courses == 1
        assert stats.total_lessons == 2
        assert [c.id for c in stats.recent_courses] == ["c1"]

    def test_recent_limited(self):
        users = [user(f"u{n}", Role.STUDENT, T0 + timedelta(days=n)) for n in range(8)]
        stats = admin_stats(users, [], recent_limit=5)
        assert [u.id for u in stats.recent_users] == ["u7", "u6", "u5", "u4", "u3"]


class TestMostRecent:

    def test_newest_first_ties_by_id_undated_last(self):
        items = [
            user("b", Role.STUDENT, T0),
            user("x", Role.STUDENT, None),
            user("a", Role.STUDENT, T0),
            user("c", Role.STUDENT, T0 + timedelta(hours=1)),
        ]
        assert [u.id for u in most_recent(items, 10)] == ["c", "a", "b", "x"]

    def test_does_not_mutate_input(self):
        items = [user("b", Role.STUDENT, T0), user("a", Role.STUDENT, T0 + timedelta(days=1))]
        most_recent(items, 1)
        assert [u.id for u in items] == ["b", "a"]


class TestDashboardDispatch:

    def test_every_role_has_a_dashboard(self):
        assert set(DASHBOARDS) == set(Role)

    async def test_student_dashboard(self, store, student, course, lessons):
        other = await create_course(store, {"title": "Chemistry"}, course.created_by)
        await EnrollmentTracker(store).enroll(student.id, course.id)
        await set_lesson_completion(store, lessons[0].id, student.id, True)

        dashboard = await get_dashboard(store, Session(student, store))

        assert dashboard["role"] == "student"
        assert dashboard["stats"]["courses_in_progress"] == 1
        assert dashboard["stats"]["total_lessons_completed"] == 1
        assert [c["id"] for c in dashboard["enrolled_courses"]] == [course.id]
        assert dashboard["enrolled_courses"][0]["progress"] == 25
        assert [c["id"] for c in dashboard["recommended_courses"]] == [other.id]

    async def test_teacher_dashboard(self, store, teacher, student, course, lessons):
        await set_lesson_completion(store, lessons[0].id, student.id, True)
        dashboard = await get_dashboard(store, Session(teacher, store))

        assert dashboard["role"] == "teacher"
        assert dashboard["stats"] == {"total_courses": 1, "total_lessons": 4, "total_students": 1}

    async def test_admin_dashboard(self, store, admin, teacher, student, course, lessons):
        dashboard = await get_dashboard(store, Session(admin, store))

        stats = dashboard["stats"]
        assert stats["total_users"] == 3
        assert stats["total_courses"] == 1
        assert stats["total_lessons"] == 4
        assert len(stats["recent_users"]) == 3
