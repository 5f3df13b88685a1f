"""
Domain errors for the e-learning platform.

Every error carries the HTTP status the API layer answers with, so services
can raise plain domain errors and routers never build HTTPExceptions by hand.
"""

from typing import Optional


class ELearnError(Exception):
    """Base class for all platform errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ==================== NOT FOUND ====================

class NotFound(ELearnError):
    status_code = 404
    entity = "Document"

    def __init__(self, entity_id: str, message: Optional[str] = None):
        self.entity_id = entity_id
        super().__init__(message or f"{self.entity} not found: {entity_id}")


class UserNotFound(NotFound):
    entity = "User"


class CourseNotFound(NotFound):
    entity = "Course"


class LessonNotFound(NotFound):
    entity = "Lesson"


class EnrollmentNotFound(NotFound):
    entity = "Enrollment"


class PostNotFound(NotFound):
    entity = "Forum post"


class QuizNotFound(NotFound):
    entity = "Quiz"


# ==================== VALIDATION / CONFLICTS ====================

class InvalidProgressValue(ELearnError, ValueError):
    status_code = 422

    def __init__(self, progress):
        self.progress = progress
        super().__init__(f"Progress must be an integer between 0 and 100, got {progress!r}")


class LessonOrderConflict(ELearnError):
    status_code = 409

    def __init__(self, course_id: str, order: int):
        self.course_id = course_id
        self.order = order
        super().__init__(f"Course {course_id} already has a lesson with order {order}")


class ProfileAlreadyExists(ELearnError):
    status_code = 409


class InvalidTransition(ELearnError):
    status_code = 409


# ==================== ACCESS ====================

class AuthenticationFailed(ELearnError):
    status_code = 401


class PermissionDenied(ELearnError):
    status_code = 403


# ==================== COLLABORATORS ====================

class StoreUnavailable(ELearnError):
    """Document store call failed; never retried at this layer"""

    status_code = 503


class TranslationUnavailable(ELearnError):
    status_code = 502
