"""
Learn-page schemas for courselearn.

Defines the read-only snapshot the learn pages render:
- LearningItem: one navigable unit (video lesson, quiz section, assignment section)
- SectionData: sidebar group with completion counters
- CourseLearnData: the full snapshot with current/previous/next items
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .catalog import SectionType


# -----------------------------------------------------------------------------
# Item payloads
# -----------------------------------------------------------------------------

class VideoInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: Optional[str] = None
    playback_id: Optional[str] = None
    duration: Optional[int] = None   # seconds
    is_free: bool = False


class QuizInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: Optional[str] = None
    passing_score: int
    time_limit: Optional[int] = None
    max_attempts: Optional[int] = None
    question_count: int


class AssignmentInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    due_date: Optional[datetime] = None
    max_score: int


_PAYLOAD_SLOTS = {
    SectionType.LESSONS: "video",
    SectionType.QUIZ: "quiz",
    SectionType.ASSIGNMENT: "assignment",
}


# -----------------------------------------------------------------------------
# Learning items
# -----------------------------------------------------------------------------

class LearningItem(BaseModel):
    """
    One unit of the play sequence.

    address_key is what URLs and locators use: the lesson id for video lessons,
    the owning section id for quiz and assignment sections. For quiz and
    assignment items id is the section id as well, never the quiz/assignment row id.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    address_key: str
    title: str
    slug: str
    order: int
    section_id: str
    section_title: str
    section_order: int
    section_type: SectionType
    is_completed: bool = False

    video: Optional[VideoInfo] = None
    quiz: Optional[QuizInfo] = None
    assignment: Optional[AssignmentInfo] = None

    @model_validator(mode="after")
    def payload_matches_section_type(self):
        allowed = _PAYLOAD_SLOTS[self.section_type]
        for slot in _PAYLOAD_SLOTS.values():
            if slot != allowed and getattr(self, slot) is not None:
                raise ValueError(
                    f"{self.section_type.value} item cannot carry a {slot} payload"
                )
        if self.section_type == SectionType.LESSONS and self.video is None:
            raise ValueError("lessons item requires a video payload")
        return self

    @property
    def payload(self):
        """The payload matching section_type (None for unauthored quiz/assignment)."""
        return getattr(self, _PAYLOAD_SLOTS[self.section_type])


class SectionData(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: Optional[str] = None
    type: SectionType
    order: int
    items: tuple[LearningItem, ...]
    completed_count: int
    total_count: int
    quiz: Optional[QuizInfo] = None
    assignment: Optional[AssignmentInfo] = None


class CourseSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    slug: str
    thumbnail: Optional[str] = None


class CourseLearnData(BaseModel):
    """Immutable learn-page snapshot for one (course, user, locator) request."""
    model_config = ConfigDict(frozen=True)

    course: CourseSummary
    sections: tuple[SectionData, ...]
    all_items: tuple[LearningItem, ...]
    total_items: int
    completed_items: int
    current_item: Optional[LearningItem] = None
    previous_item: Optional[LearningItem] = None
    next_item: Optional[LearningItem] = None
