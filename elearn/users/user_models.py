from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# ==================== ENUMS ====================

class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

    @property
    def can_author(self) -> bool:
        """Teachers and admins create courses and answer in forums"""
        return self in (Role.TEACHER, Role.ADMIN)

# ==================== DATABASE MODELS ====================

class NotificationSettings(BaseModel):
    email: bool = True
    push: bool = True


class UserProfile(BaseModel):
    """
    Stored under the auth provider's uid.
    completed_* counters are only moved by enrollment and lesson completion.
    """
    id: str
    name: str
    email: str
    role: Role = Role.STUDENT
    enrolled_courses: List[str] = []
    completed_lessons_count: int = 0
    completed_courses_count: int = 0
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None
    preferred_language: Optional[str] = None
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @field_validator("enrolled_courses")
    @classmethod
    def dedupe_courses(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

# ==================== REQUEST SCHEMAS ====================

class UserProfileCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str
    role: Role = Role.STUDENT
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None


class UserProfileUpdate(BaseModel):
    """Role and progress counters cannot be changed through profile edits"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None
    preferred_language: Optional[str] = None
    notification_settings: Optional[NotificationSettings] = None
