import logging
from typing import Dict, List, Optional

from pymongo import ASCENDING, DESCENDING

from elearn.core.database import FORUM_POSTS, POST_REPLIES, USERS, generate_id, utcnow
from elearn.core.errors import PostNotFound
from elearn.forums.forum_models import ForumPost, PostReply
from elearn.users.user_models import Role

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("created_at", DESCENDING)]

# ==================== POSTS ====================

async def create_post(store, data: dict, author_id: str, author_name: str) -> ForumPost:
    post_id = generate_id("POST")
    now = utcnow()

    post = {
        "title": data["title"],
        "content": data["content"],
        "author_id": author_id,
        "author_name": author_name,
        "course_id": data.get("course_id"),
        "lesson_id": data.get("lesson_id"),
        "reply_count": 0,
        "created_at": now,
        "updated_at": now,
    }

    await store.set(FORUM_POSTS, post_id, post)
    logger.info(f"Forum post {post_id} created by {author_id}")
    return ForumPost(id=post_id, **post)


async def get_post(store, post_id: str) -> ForumPost:
    doc = await store.get(FORUM_POSTS, post_id)
    if doc is None:
        raise PostNotFound(post_id)
    return ForumPost(**doc)


async def list_posts(
    store,
    course_id: Optional[str] = None,
    lesson_id: Optional[str] = None,
    author_id: Optional[str] = None,
) -> List[ForumPost]:
    """Posts newest first, filtered by any of course, lesson or author"""
    filters = {}
    if course_id:
        filters["course_id"] = course_id
    if lesson_id:
        filters["lesson_id"] = lesson_id
    if author_id:
        filters["author_id"] = author_id

    docs = await store.query(FORUM_POSTS, filters, order=NEWEST_FIRST)
    return [ForumPost(**doc) for doc in docs]


async def list_enrolled_course_posts(store, course_ids: List[str]) -> List[ForumPost]:
    if not course_ids:
        return []
    docs = await store.query(FORUM_POSTS, {"course_id": {"$in": list(course_ids)}}, order=NEWEST_FIRST)
    return [ForumPost(**doc) for doc in docs]


async def most_active_posts(store, count: int = 10) -> List[ForumPost]:
    docs = await store.query(
        FORUM_POSTS, order=[("reply_count", DESCENDING), ("created_at", DESCENDING)], limit=count
    )
    return [ForumPost(**doc) for doc in docs]

# ==================== REPLIES ====================

async def create_reply(store, post_id: str, content: str, author_id: str, author_name: str) -> PostReply:
    """Reply to an existing post and bump its reply_count"""
    await get_post(store, post_id)

    reply_id = generate_id("RPL")
    reply = {
        "post_id": post_id,
        "content": content,
        "author_id": author_id,
        "author_name": author_name,
        "created_at": utcnow(),
    }

    await store.set(POST_REPLIES, reply_id, reply)
    await store.increment(FORUM_POSTS, post_id, "reply_count")
    await store.update(FORUM_POSTS, post_id, {"updated_at": utcnow()})
    return PostReply(id=reply_id, **reply)


async def get_post_replies(store, post_id: str) -> List[PostReply]:
    """Replies oldest first"""
    docs = await store.query(POST_REPLIES, {"post_id": post_id}, order=[("created_at", ASCENDING)])
    return [PostReply(**doc) for doc in docs]


async def get_user_replies(store, user_id: str) -> dict:
    """A user's replies plus the posts they answered"""
    docs = await store.query(POST_REPLIES, {"author_id": user_id}, order=NEWEST_FIRST)
    replies = [PostReply(**doc) for doc in docs]

    posts: Dict[str, ForumPost] = {}
    for post_id in dict.fromkeys(r.post_id for r in replies):
        doc = await store.get(FORUM_POSTS, post_id)
        if doc:
            posts[post_id] = ForumPost(**doc)

    return {"replies": replies, "posts": posts}


async def can_user_reply(store, user_id: str) -> bool:
    """Only teachers and admins answer forum posts"""
    if not user_id:
        return False
    user = await store.get(USERS, user_id)
    if user is None:
        return False
    return Role(user.get("role", Role.STUDENT.value)).can_author
