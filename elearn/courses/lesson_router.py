from fastapi import APIRouter, Depends

from elearn.auth.firebase_auth import get_current_session, require_author
from elearn.auth.session import Session
from elearn.core.database import get_store
from elearn.courses import database as courses_db
from elearn.courses.course_permissions import verify_lesson_ownership
from elearn.courses.enrollment import EnrollmentTracker
from elearn.courses.models import Lesson, LessonUpdate, QuizAnswer

router = APIRouter(prefix="/lessons", tags=["Lessons"])


@router.get("/{lesson_id}", response_model=Lesson)
async def get_lesson(
    lesson_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    return await courses_db.get_lesson(store, lesson_id)


@router.patch("/{lesson_id}", response_model=Lesson)
async def update_lesson(
    lesson_id: str,
    data: LessonUpdate,
    author: Session = Depends(require_author),
    store=Depends(get_store),
):
    await verify_lesson_ownership(store, lesson_id, author)
    return await courses_db.update_lesson(
        store, lesson_id, data.model_dump(mode="json", exclude_none=True)
    )


@router.delete("/{lesson_id}")
async def delete_lesson(
    lesson_id: str,
    author: Session = Depends(require_author),
    store=Depends(get_store),
):
    await verify_lesson_ownership(store, lesson_id, author)
    await courses_db.delete_lesson(store, lesson_id)
    return {"success": True, "lesson_id": lesson_id}


@router.post("/{lesson_id}/quiz")
async def submit_quiz_answer(
    lesson_id: str,
    data: QuizAnswer,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """
    Check a quiz answer. Completing the lesson is a separate, explicit
    action (POST /navigation/complete).
    """
    correct = await courses_db.submit_quiz_answer(store, lesson_id, data.quiz_id, data.answer)
    return {"lesson_id": lesson_id, "quiz_id": data.quiz_id, "correct": correct}


@router.delete("/{lesson_id}/completion")
async def reopen_lesson(
    lesson_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """Remove the caller from the lesson's completion set"""
    lesson = await courses_db.get_lesson(store, lesson_id)
    changed = await courses_db.set_lesson_completion(store, lesson_id, session.user_id, False)
    enrollment = None
    if changed:
        enrollment = await EnrollmentTracker(store).refresh_progress(session.user_id, lesson.course_id)
    return {"lesson_id": lesson_id, "changed": changed, "enrollment": enrollment}
