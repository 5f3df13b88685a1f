from typing import List, Optional

from fastapi import APIRouter, Depends

from elearn.auth.firebase_auth import get_current_session, require_author
from elearn.auth.session import Session
from elearn.core.database import get_store
from elearn.courses import database as courses_db
from elearn.courses.course_permissions import verify_course_ownership
from elearn.courses.models import Course, CourseCreate, CourseUpdate, Lesson, LessonCreate
from elearn.courses.progress import calculate_course_progress, count_completed_lessons

router = APIRouter(prefix="/courses", tags=["Courses"])

# ==================== COURSES ====================

@router.get("", response_model=List[Course])
async def list_courses(
    q: Optional[str] = None,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """All courses newest first; `q` searches title and description"""
    if q:
        return await courses_db.search_courses(store, q)
    return await courses_db.list_courses(store)


@router.post("", response_model=Course, status_code=201)
async def create_course(
    data: CourseCreate,
    author: Session = Depends(require_author),
    store=Depends(get_store),
):
    return await courses_db.create_course(store, data.model_dump(mode="json"), author.user_id)


@router.get("/{course_id}", response_model=Course)
async def get_course(
    course_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    return await courses_db.get_course(store, course_id)


@router.patch("/{course_id}", response_model=Course)
async def update_course(
    course_id: str,
    data: CourseUpdate,
    author: Session = Depends(require_author),
    store=Depends(get_store),
):
    await verify_course_ownership(store, course_id, author)
    return await courses_db.update_course(
        store, course_id, data.model_dump(mode="json", exclude_none=True)
    )


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    author: Session = Depends(require_author),
    store=Depends(get_store),
):
    """Delete a course together with all of its lessons"""
    await verify_course_ownership(store, course_id, author)
    removed = await courses_db.delete_course(store, course_id)
    return {"success": True, "course_id": course_id, "lessons_deleted": removed}

# ==================== LESSONS OF A COURSE ====================

@router.get("/{course_id}/lessons", response_model=List[Lesson])
async def list_course_lessons(
    course_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    await courses_db.get_course(store, course_id)
    return await courses_db.get_course_lessons(store, course_id)


@router.post("/{course_id}/lessons", response_model=Lesson, status_code=201)
async def create_lesson(
    course_id: str,
    data: LessonCreate,
    author: Session = Depends(require_author),
    store=Depends(get_store),
):
    await verify_course_ownership(store, course_id, author)
    return await courses_db.create_lesson(store, course_id, data.model_dump(mode="json"))


@router.get("/{course_id}/progress")
async def get_course_progress(
    course_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """The caller's progress computed from lesson completion sets"""
    await courses_db.get_course(store, course_id)
    lessons = await courses_db.get_course_lessons(store, course_id)

    return {
        "course_id": course_id,
        "total_lessons": len(lessons),
        "completed_lessons": count_completed_lessons(lessons, session.user_id),
        "completed_lesson_ids": [l.id for l in lessons if l.is_completed_by(session.user_id)],
        "progress": calculate_course_progress(lessons, session.user_id),
    }
