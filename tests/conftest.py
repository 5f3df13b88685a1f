"""
Shared fixtures: an in-memory document store seeded with users, a course
and its lessons.
"""

import pytest

from elearn.core.database import InMemoryDocumentStore
from elearn.courses.database import create_course, create_lesson
from elearn.users.user_service import create_user_profile


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
async def student(store):
    return await create_user_profile(store, "student-1", {"name": "Ama", "email": "ama@example.com"})


@pytest.fixture
async def teacher(store):
    return await create_user_profile(
        store, "teacher-1", {"name": "Kofi", "email": "kofi@example.com", "role": "teacher"}
    )


@pytest.fixture
async def admin(store):
    return await create_user_profile(
        store, "admin-1", {"name": "Esi", "email": "esi@example.com", "role": "admin"}
    )


@pytest.fixture
async def course(store, teacher):
    return await create_course(
        store, {"title": "Intro to Biology", "description": "Cells and life"}, teacher.id
    )


@pytest.fixture
async def lessons(store, course):
    """Four lessons, orders 1..4"""
    return [
        await create_lesson(store, course.id, {"title": f"Lesson {n}", "order": n})
        for n in range(1, 5)
    ]
