"""courselearn utilities."""

from .fixtures import (
    CourseFixture,
    SectionFixture,
    LessonFixture,
    QuizFixture,
    AssignmentFixture,
    EnrollmentFixture,
    CompletionFixture,
    load_course_fixture,
    create_database,
    populate_course,
    run_integrity_checks,
    compute_stats,
)

__all__ = [
    "CourseFixture",
    "SectionFixture",
    "LessonFixture",
    "QuizFixture",
    "AssignmentFixture",
    "EnrollmentFixture",
    "CompletionFixture",
    "load_course_fixture",
    "create_database",
    "populate_course",
    "run_integrity_checks",
    "compute_stats",
]
