import logging
from typing import List, Optional

from pymongo import DESCENDING

from elearn.core.database import USERS, utcnow
from elearn.core.errors import ProfileAlreadyExists, UserNotFound
from elearn.users.user_models import NotificationSettings, Role, UserProfile

logger = logging.getLogger(__name__)

# Fields only the enrollment and completion paths may write
PROTECTED_FIELDS = {
    "id", "email", "role", "enrolled_courses",
    "completed_lessons_count", "completed_courses_count", "created_at",
}

# ==================== PROFILE CRUD ====================

async def create_user_profile(store, user_id: str, data: dict) -> UserProfile:
    """Create the profile for a freshly signed-up auth user"""
    if await store.get(USERS, user_id) is not None:
        raise ProfileAlreadyExists(f"User profile already exists: {user_id}")

    now = utcnow()
    profile = {
        "name": data["name"],
        "email": data["email"],
        "role": Role(data.get("role") or Role.STUDENT).value,
        "photo_url": data.get("photo_url"),
        "phone_number": data.get("phone_number"),
        "bio": None,
        "preferred_language": None,
        "enrolled_courses": [],
        "completed_lessons_count": 0,
        "completed_courses_count": 0,
        "notification_settings": NotificationSettings().model_dump(),
        "created_at": now,
        "last_login": now,
    }

    await store.set(USERS, user_id, profile)
    logger.info(f"Profile created for {user_id} ({profile['role']})")
    return UserProfile(id=user_id, **profile)


async def find_user(store, user_id: str) -> Optional[UserProfile]:
    doc = await store.get(USERS, user_id)
    return UserProfile(**doc) if doc else None


async def get_user(store, user_id: str) -> UserProfile:
    user = await find_user(store, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


async def get_all_users(store, role: Optional[Role] = None) -> List[UserProfile]:
    """Users newest first, optionally filtered by role at the store"""
    filters = {"role": role.value} if role else None
    docs = await store.query(USERS, filters, order=[("created_at", DESCENDING)])
    return [UserProfile(**doc) for doc in docs]


async def update_user_profile(store, user_id: str, updates: dict) -> UserProfile:
    updates = {k: v for k, v in updates.items() if k not in PROTECTED_FIELDS}
    if updates and not await store.update(USERS, user_id, updates):
        raise UserNotFound(user_id)
    return await get_user(store, user_id)


async def update_last_login(store, user_id: str) -> None:
    if not await store.update(USERS, user_id, {"last_login": utcnow()}):
        raise UserNotFound(user_id)
