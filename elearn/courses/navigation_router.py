from fastapi import APIRouter, Depends

from elearn.auth.firebase_auth import get_current_session
from elearn.auth.session import Session

router = APIRouter(prefix="/navigation", tags=["Navigation"])


@router.get("")
async def get_navigation_state(session: Session = Depends(get_current_session)):
    return session.navigator.state.to_dict()


@router.post("/courses/{course_id}")
async def select_course(course_id: str, session: Session = Depends(get_current_session)):
    state = await session.navigator.select_course(course_id)
    return state.to_dict()


@router.post("/lessons/{lesson_id}")
async def select_lesson(lesson_id: str, session: Session = Depends(get_current_session)):
    state = await session.navigator.select_lesson(lesson_id)
    return state.to_dict()


@router.post("/back")
async def go_back(session: Session = Depends(get_current_session)):
    state = await session.navigator.back()
    return state.to_dict()


@router.post("/complete")
async def complete_lesson(session: Session = Depends(get_current_session)):
    """Complete the open lesson and return to its course"""
    state = await session.navigator.complete()
    return state.to_dict()


@router.post("/reset")
async def reset_navigation(session: Session = Depends(get_current_session)):
    return session.navigator.reset().to_dict()
