"""
Catalog schemas for courselearn.

Defines Pydantic models for the authored course structure:
- Courses and app-level user profiles
- Sections as a tagged union (lessons / quiz / assignment)
- Lessons with their video content
- Quizzes, quiz questions and assignments
- Enrollments
"""

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# IDENTIFIER CONVENTION: ids and slugs are URL-safe tokens, max 255 chars
# =============================================================================

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
MAX_IDENTIFIER_LENGTH = 255


def validate_identifier(v: str, field: str = "identifier") -> str:
    """Shared identifier validation for ids and slugs."""
    if not isinstance(v, str) or not v:
        raise ValueError(f"{field} must be a non-empty string")
    if len(v) > MAX_IDENTIFIER_LENGTH:
        raise ValueError(f"{field} must be at most {MAX_IDENTIFIER_LENGTH} characters")
    if not IDENTIFIER_PATTERN.match(v):
        raise ValueError(f"{field} contains invalid characters: {v!r}")
    return v


class SectionType(str, Enum):
    LESSONS = "lessons"
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# Statuses that let a student open the learn pages
ACCESS_GRANTING_STATUSES = frozenset({EnrollmentStatus.ACTIVE, EnrollmentStatus.COMPLETED})


# -----------------------------------------------------------------------------
# Course and users
# -----------------------------------------------------------------------------

class Course(BaseModel):
    id: str
    title: str
    slug: str
    description: str = ""
    thumbnail: Optional[str] = None

    @field_validator("id", "slug")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class AppUser(BaseModel):
    """App-level profile attached to a platform account."""
    id: str
    user_id: str            # platform (auth) account id
    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("id", "user_id")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class Enrollment(BaseModel):
    id: str
    app_user_id: str
    course_id: str
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    progress_percent: int = Field(default=0, ge=0, le=100)
    enrolled_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def grants_access(self) -> bool:
        return self.status in ACCESS_GRANTING_STATUSES


# -----------------------------------------------------------------------------
# Section children
# -----------------------------------------------------------------------------

class LessonContent(BaseModel):
    video_url: Optional[str] = None
    video_playback_id: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    is_free: bool = False


class Lesson(BaseModel):
    id: str
    title: str
    slug: str
    order: int
    section_id: str
    course_id: str
    content: Optional[LessonContent] = None

    @field_validator("id", "section_id", "course_id")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class QuizQuestion(BaseModel):
    id: str
    question: str
    question_type: str = "multiple_choice"
    options: list[Any] = []
    correct_answer: Any = None
    explanation: Optional[str] = None
    points: int = Field(default=1, ge=0)
    order: int = 0


class Quiz(BaseModel):
    id: str
    section_id: str
    course_id: str
    title: str
    description: Optional[str] = None
    passing_score: int = Field(default=70, ge=0, le=100)
    time_limit: Optional[int] = None      # minutes
    max_attempts: Optional[int] = 3
    question_count: int = 0               # live count when loaded from the store


class Assignment(BaseModel):
    id: str
    section_id: str
    course_id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    max_score: int = Field(default=100, ge=0)
    due_date: Optional[datetime] = None


# -----------------------------------------------------------------------------
# Section tagged union
# -----------------------------------------------------------------------------

class SectionBase(BaseModel):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    order: int

    @field_validator("id", "course_id")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class LessonsSection(SectionBase):
    type: Literal["lessons"] = "lessons"
    lessons: list[Lesson] = []


class QuizSection(SectionBase):
    """Quiz section; quiz is None while the instructor has not authored it yet."""
    type: Literal["quiz"] = "quiz"
    quiz: Optional[Quiz] = None


class AssignmentSection(SectionBase):
    """Assignment section; assignment is None until authored."""
    type: Literal["assignment"] = "assignment"
    assignment: Optional[Assignment] = None


Section = Annotated[
    Union[LessonsSection, QuizSection, AssignmentSection],
    Field(discriminator="type"),
]
