"""
courselearn Schemas - Pydantic models for the course learning core.

This module exports all schema classes for:
- Catalog: courses, sections (tagged union), lessons, quizzes, assignments, enrollments
- Learn: learning items, section groups, the learn-page snapshot
- Progress: completion records, course progress, write outcomes
"""

# Catalog schemas
from .catalog import (
    SectionType,
    EnrollmentStatus,
    ACCESS_GRANTING_STATUSES,
    Course,
    AppUser,
    Enrollment,
    LessonContent,
    Lesson,
    QuizQuestion,
    Quiz,
    Assignment,
    LessonsSection,
    QuizSection,
    AssignmentSection,
    Section,
    validate_identifier,
)

# Learn schemas
from .learn import (
    VideoInfo,
    QuizInfo,
    AssignmentInfo,
    LearningItem,
    SectionData,
    CourseSummary,
    CourseLearnData,
)

# Progress schemas
from .progress import (
    CompletionRecord,
    CourseProgress,
    CompletionStatus,
    CompletionResult,
)

__all__ = [
    # Catalog
    'SectionType',
    'EnrollmentStatus',
    'ACCESS_GRANTING_STATUSES',
    'Course',
    'AppUser',
    'Enrollment',
    'LessonContent',
    'Lesson',
    'QuizQuestion',
    'Quiz',
    'Assignment',
    'LessonsSection',
    'QuizSection',
    'AssignmentSection',
    'Section',
    'validate_identifier',
    # Learn
    'VideoInfo',
    'QuizInfo',
    'AssignmentInfo',
    'LearningItem',
    'SectionData',
    'CourseSummary',
    'CourseLearnData',
    # Progress
    'CompletionRecord',
    'CourseProgress',
    'CompletionStatus',
    'CompletionResult',
]
