from fastapi import APIRouter, Depends

from elearn.auth.firebase_auth import get_current_session, require_admin
from elearn.auth.session import Session
from elearn.core.database import get_store
from elearn.core.errors import EnrollmentNotFound
from elearn.courses.enrollment import EnrollmentTracker, enrollment_id
from elearn.courses.models import Enrollment, EnrollmentCreate, ProgressUpdate

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


@router.post("", response_model=Enrollment)
async def enroll(
    data: EnrollmentCreate,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """Enroll the caller in a course; enrolling again returns the same record"""
    return await EnrollmentTracker(store).enroll(session.user_id, data.course_id)


@router.get("/me")
async def get_my_enrollments(
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """Enrolled courses with their enrollment records"""
    tracker = EnrollmentTracker(store)
    courses = await tracker.get_enrolled_courses(session.user_id)
    enrollments = {e.course_id: e for e in await tracker.get_user_enrollments(session.user_id)}

    result = [
        {"course": course, "enrollment": enrollments.get(course.id)}
        for course in courses
    ]
    return {"enrollments": result, "count": len(result)}


@router.get("/{course_id}", response_model=Enrollment)
async def get_enrollment(
    course_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    enrollment = await EnrollmentTracker(store).get_enrollment(session.user_id, course_id)
    if enrollment is None:
        raise EnrollmentNotFound(enrollment_id(session.user_id, course_id))
    return enrollment


@router.post("/{course_id}/refresh", response_model=Enrollment)
async def refresh_progress(
    course_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """Recompute the caller's progress from their lesson completions"""
    enrollment = await EnrollmentTracker(store).refresh_progress(session.user_id, course_id)
    if enrollment is None:
        raise EnrollmentNotFound(enrollment_id(session.user_id, course_id))
    return enrollment


@router.put("/{course_id}/users/{user_id}/progress", response_model=Enrollment)
async def override_progress(
    course_id: str,
    user_id: str,
    data: ProgressUpdate,
    admin: Session = Depends(require_admin),
    store=Depends(get_store),
):
    """Admin correction of a learner's progress"""
    return await EnrollmentTracker(store).record_progress(user_id, course_id, data.progress)
