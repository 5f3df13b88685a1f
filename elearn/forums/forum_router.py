from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from elearn.auth.firebase_auth import get_current_session
from elearn.auth.session import Session
from elearn.core.database import get_store
from elearn.core.errors import PermissionDenied
from elearn.forums import forum_service as service
from elearn.forums.forum_models import ForumPost, ForumPostCreate, PostReply, PostReplyCreate
from elearn.users.user_service import get_user

router = APIRouter(prefix="/forums", tags=["Forums"])

# ==================== POSTS ====================

@router.get("/posts", response_model=List[ForumPost])
async def list_posts(
    course_id: Optional[str] = None,
    lesson_id: Optional[str] = None,
    author_id: Optional[str] = None,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    return await service.list_posts(store, course_id, lesson_id, author_id)


@router.post("/posts", response_model=ForumPost, status_code=201)
async def create_post(
    data: ForumPostCreate,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    return await service.create_post(
        store, data.model_dump(mode="json"), session.user_id, session.profile.name
    )


@router.get("/posts/enrolled", response_model=List[ForumPost])
async def enrolled_course_posts(
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """Posts from every course the caller is enrolled in"""
    user = await get_user(store, session.user_id)
    return await service.list_enrolled_course_posts(store, user.enrolled_courses)


@router.get("/posts/active", response_model=List[ForumPost])
async def most_active(
    count: int = Query(10, ge=1, le=50),
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    return await service.most_active_posts(store, count)


@router.get("/posts/{post_id}", response_model=ForumPost)
async def get_post(
    post_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    return await service.get_post(store, post_id)

# ==================== REPLIES ====================

@router.get("/posts/{post_id}/replies", response_model=List[PostReply])
async def get_replies(
    post_id: str,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    await service.get_post(store, post_id)
    return await service.get_post_replies(store, post_id)


@router.post("/posts/{post_id}/replies", response_model=PostReply, status_code=201)
async def reply(
    post_id: str,
    data: PostReplyCreate,
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    """Teachers and admins answer posts"""
    if not await service.can_user_reply(store, session.user_id):
        raise PermissionDenied("Only teachers and admins can reply to posts")
    return await service.create_reply(store, post_id, data.content, session.user_id, session.profile.name)


@router.get("/me/replies")
async def my_replies(
    session: Session = Depends(get_current_session),
    store=Depends(get_store),
):
    return await service.get_user_replies(store, session.user_id)
