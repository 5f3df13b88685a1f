from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# ==================== ENUMS ====================

class ContentType(str, Enum):
    TEXT = "text"
    VIDEO = "video"
    QUIZ = "quiz"

# ==================== LESSON CONTENT ====================

class Quiz(BaseModel):
    id: str
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=1)
    correct_answer: str

    @model_validator(mode="after")
    def validate_answer(self):
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class ContentBlock(BaseModel):
    type: ContentType
    content: str = ""
    quiz: Optional[Quiz] = None

    @model_validator(mode="after")
    def validate_quiz(self):
        if self.type == ContentType.QUIZ and self.quiz is None:
            raise ValueError("quiz content blocks require a quiz")
        return self

# ==================== COURSE MODELS ====================

class Course(BaseModel):
    id: str
    title: str
    description: str
    created_by: Optional[str] = None
    estimated_time: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    estimated_time: Optional[str] = None
    image_url: Optional[str] = None


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    estimated_time: Optional[str] = None
    image_url: Optional[str] = None

# ==================== LESSON MODELS ====================

class Lesson(BaseModel):
    id: str
    course_id: str
    title: str
    description: str = ""
    order: int
    content: List[ContentBlock] = []
    duration_minutes: int = 0
    video_url: Optional[str] = None
    completed_by: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("completed_by")
    @classmethod
    def dedupe_completed_by(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    def is_completed_by(self, user_id: str) -> bool:
        return user_id in self.completed_by

    def find_quiz(self, quiz_id: str) -> Optional[Quiz]:
        for block in self.content:
            if block.quiz is not None and block.quiz.id == quiz_id:
                return block.quiz
        return None


class LessonCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    order: int
    content: List[ContentBlock] = []
    duration_minutes: int = Field(0, ge=0)
    video_url: Optional[str] = None


class LessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    order: Optional[int] = None
    content: Optional[List[ContentBlock]] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    video_url: Optional[str] = None


class QuizAnswer(BaseModel):
    quiz_id: str
    answer: str

# ==================== ENROLLMENT MODELS ====================

class Enrollment(BaseModel):
    id: str
    user_id: str
    course_id: str
    progress: int = Field(0, ge=0, le=100)
    is_completed: bool = False
    enrolled_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None


class EnrollmentCreate(BaseModel):
    course_id: str


class ProgressUpdate(BaseModel):
    # Range is checked by the tracker so the API answers InvalidProgressValue
    progress: int


class CourseWithLessons(Course):
    lessons: List[Lesson] = []
    progress: int = 0
