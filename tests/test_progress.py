"""
Tests for course progress calculation.
"""

from elearn.courses.models import Lesson
from elearn.courses.progress import calculate_course_progress, count_completed_lessons


def make_lessons(total: int, completed: int, user_id: str = "u1"):
    return [
        Lesson(
            id=f"l{n}",
            course_id="c1",
            title=f"Lesson {n}",
            order=n,
            completed_by=[user_id] if n < completed else [],
        )
        for n in range(total)
    ]


class TestCountCompletedLessons:

    def test_counts_only_the_given_user(self):
        lessons = make_lessons(3, 2)
        lessons[2].completed_by.append("someone-else")
        assert count_completed_lessons(lessons, "u1") == 2
        assert count_completed_lessons(lessons, "someone-else") == 1

    def test_duplicate_ids_count_once(self):
        lesson = Lesson(id="l1", course_id="c1", title="L", order=1, completed_by=["u1", "u1"])
        assert lesson.completed_by == ["u1"]
        assert count_completed_lessons([lesson], "u1") == 1


class TestCalculateCourseProgress:

    def test_empty_course_is_zero(self):
        assert calculate_course_progress([], "u1") == 0

    def test_half_of_four_lessons(self):
        assert calculate_course_progress(make_lessons(4, 2), "u1") == 50

    def test_rounds_half_up(self):
        # 12.5 -> 13
        assert calculate_course_progress(make_lessons(8, 1), "u1") == 13
        # 33.33 -> 33, 66.67 -> 67
        assert calculate_course_progress(make_lessons(3, 1), "u1") == 33
        assert calculate_course_progress(make_lessons(3, 2), "u1") == 67

    def test_all_and_none(self):
        assert calculate_course_progress(make_lessons(5, 5), "u1") == 100
        assert calculate_course_progress(make_lessons(5, 0), "u1") == 0

    def test_bounded_and_monotonic(self):
        total = 7
        previous = -1
        for completed in range(total + 1):
            progress = calculate_course_progress(make_lessons(total, completed), "u1")
            assert 0 <= progress <= 100
            assert progress >= previous
            previous = progress

    def test_unknown_user_is_zero(self):
        assert calculate_course_progress(make_lessons(4, 4), "nobody") == 0
