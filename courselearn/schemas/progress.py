"""
Progress tracking schemas for courselearn.

Defines Pydantic models for student progress including:
- Per-lesson completion records
- Course-level progress roll-up
- Outcome of completion writes
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class CompletionRecord(BaseModel):
    app_user_id: str
    lesson_id: str
    completed: bool = False
    watched_seconds: int = 0
    last_watched_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CourseProgress(BaseModel):
    completed: int
    total: int
    percentage: int
    is_complete: bool

    @classmethod
    def from_counts(cls, completed: int, total: int) -> "CourseProgress":
        # half-up rounding, so 2.5% reads as 3%; 199/200 still reads 100% but is not complete
        percentage = int(completed * 100 / total + 0.5) if total > 0 else 0
        return cls(
            completed=completed,
            total=total,
            percentage=percentage,
            is_complete=total > 0 and completed >= total,
        )


class CompletionStatus(str, Enum):
    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    UPDATED = "updated"
    INVALID = "invalid"
    PROFILE_NOT_FOUND = "profile_not_found"
    COURSE_NOT_FOUND = "course_not_found"
    LESSON_NOT_FOUND = "lesson_not_found"
    NOT_ENROLLED = "not_enrolled"


SUCCESS_STATUSES = frozenset({
    CompletionStatus.COMPLETED,
    CompletionStatus.ALREADY_COMPLETED,
    CompletionStatus.UPDATED,
})


class CompletionResult(BaseModel):
    status: CompletionStatus
    message: str = ""
    progress: Optional[CourseProgress] = None

    @property
    def success(self) -> bool:
        return self.status in SUCCESS_STATUSES
