from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ForumPost(BaseModel):
    id: str
    title: str
    content: str
    author_id: str
    author_name: str
    course_id: Optional[str] = None
    lesson_id: Optional[str] = None
    reply_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PostReply(BaseModel):
    id: str
    post_id: str
    content: str
    author_id: str
    author_name: str
    created_at: Optional[datetime] = None

# ==================== REQUEST SCHEMAS ====================

class ForumPostCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=1)
    course_id: Optional[str] = None
    lesson_id: Optional[str] = None


class PostReplyCreate(BaseModel):
    content: str = Field(..., min_length=1)
