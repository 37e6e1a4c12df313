"""
Course fixture utilities for courselearn.

Loads YAML course descriptions, builds a course database from them and
checks the result for structural problems.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from courselearn.classroom.store import SCHEMA
from courselearn.schemas import (
    AppUser,
    Course,
    EnrollmentStatus,
    LessonContent,
    QuizQuestion,
    SectionType,
    validate_identifier,
)

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Fixture schemas (nested, parent ids implied by position in the tree)
# -----------------------------------------------------------------------------

class LessonFixture(BaseModel):
    id: str
    title: str
    slug: str
    order: int
    content: Optional[LessonContent] = None

    @field_validator("id", "slug")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class QuizFixture(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    passing_score: int = Field(default=70, ge=0, le=100)
    time_limit: Optional[int] = None
    max_attempts: Optional[int] = 3
    question_count: int = 0
    questions: list[QuizQuestion] = []

    @field_validator("id")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class AssignmentFixture(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    max_score: int = Field(default=100, ge=0)
    due_date: Optional[datetime] = None

    @field_validator("id")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class SectionFixture(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    type: SectionType = SectionType.LESSONS
    order: int
    lessons: list[LessonFixture] = []
    quiz: Optional[QuizFixture] = None
    assignment: Optional[AssignmentFixture] = None

    @field_validator("id")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)

    @model_validator(mode="after")
    def children_match_type(self):
        if self.type != SectionType.LESSONS and self.lessons:
            raise ValueError(f"section {self.id}: only lessons sections can hold lessons")
        if self.type != SectionType.QUIZ and self.quiz is not None:
            raise ValueError(f"section {self.id}: only quiz sections can hold a quiz")
        if self.type != SectionType.ASSIGNMENT and self.assignment is not None:
            raise ValueError(f"section {self.id}: only assignment sections can hold an assignment")
        return self


class EnrollmentFixture(BaseModel):
    id: str
    app_user_id: str
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    progress_percent: int = Field(default=0, ge=0, le=100)

    @field_validator("id", "app_user_id")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class CompletionFixture(BaseModel):
    app_user_id: str
    lesson_id: str
    completed: bool = True
    watched_seconds: int = Field(default=0, ge=0)

    @field_validator("app_user_id", "lesson_id")
    @classmethod
    def identifiers_valid(cls, v, info):
        return validate_identifier(v, info.field_name)


class CourseFixture(BaseModel):
    """A whole course tree plus the users, enrollments and progress around it."""
    course: Course
    sections: list[SectionFixture] = []
    users: list[AppUser] = []
    enrollments: list[EnrollmentFixture] = []
    completions: list[CompletionFixture] = []


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------

def load_course_fixture(path: Path) -> CourseFixture:
    """
    Load a course fixture from YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If the content doesn't describe a valid course
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Course fixture not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}
    return CourseFixture.model_validate(data)


# -----------------------------------------------------------------------------
# Database population
# -----------------------------------------------------------------------------

def create_database(db_path: Path, overwrite: bool = False) -> sqlite3.Connection:
    """Create database and schema."""
    db_path = Path(db_path)
    if db_path.exists() and overwrite:
        db_path.unlink()
        logger.info(f"Removed existing database: {db_path}")

    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    logger.info(f"Created database schema: {db_path}")
    return conn


def populate_course(conn: sqlite3.Connection, fixture: CourseFixture):
    """Insert a course fixture. Runs in one transaction."""
    course = fixture.course
    now = datetime.now().isoformat()

    with conn:
        conn.execute(
            "INSERT INTO courses (id, title, slug, description, thumbnail) VALUES (?, ?, ?, ?, ?)",
            (course.id, course.title, course.slug, course.description, course.thumbnail)
        )

        for user in fixture.users:
            conn.execute(
                "INSERT OR IGNORE INTO app_users (id, user_id, name, email) VALUES (?, ?, ?, ?)",
                (user.id, user.user_id, user.name, user.email)
            )

        lesson_count = 0
        for section in fixture.sections:
            conn.execute(
                """INSERT INTO sections (id, course_id, title, description, type, position)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (section.id, course.id, section.title, section.description,
                 section.type.value, section.order)
            )

            for lesson in section.lessons:
                conn.execute(
                    """INSERT INTO lessons (id, section_id, course_id, title, slug, position)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (lesson.id, section.id, course.id, lesson.title, lesson.slug, lesson.order)
                )
                if lesson.content is not None:
                    content = lesson.content
                    conn.execute(
                        """INSERT INTO lesson_content
                           (lesson_id, video_url, video_playback_id, duration_minutes, is_free)
                           VALUES (?, ?, ?, ?, ?)""",
                        (lesson.id, content.video_url, content.video_playback_id,
                         content.duration_minutes, int(content.is_free))
                    )
                lesson_count += 1

            if section.quiz is not None:
                _insert_quiz(conn, course.id, section.id, section.quiz)

            if section.assignment is not None:
                assignment = section.assignment
                conn.execute(
                    """INSERT INTO assignments
                       (id, section_id, course_id, title, description, instructions, max_score, due_date)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (assignment.id, section.id, course.id, assignment.title,
                     assignment.description, assignment.instructions, assignment.max_score,
                     assignment.due_date.isoformat() if assignment.due_date else None)
                )

        for enrollment in fixture.enrollments:
            conn.execute(
                """INSERT INTO enrollments
                   (id, app_user_id, course_id, status, progress_percent, enrolled_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (enrollment.id, enrollment.app_user_id, course.id,
                 enrollment.status.value, enrollment.progress_percent, now)
            )

        for completion in fixture.completions:
            conn.execute(
                """INSERT OR REPLACE INTO lesson_progress
                   (app_user_id, lesson_id, completed, watched_seconds, completed_at, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (completion.app_user_id, completion.lesson_id, int(completion.completed),
                 completion.watched_seconds, now if completion.completed else None, now, now)
            )

    logger.info(
        f"Inserted course {course.slug}: {len(fixture.sections)} sections, "
        f"{lesson_count} lessons, {len(fixture.enrollments)} enrollments"
    )


def _insert_quiz(conn: sqlite3.Connection, course_id: str, section_id: str, quiz: QuizFixture):
    conn.execute(
        """INSERT INTO quizzes
           (id, section_id, course_id, title, description, passing_score,
            time_limit, max_attempts, question_count)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (quiz.id, section_id, course_id, quiz.title, quiz.description, quiz.passing_score,
         quiz.time_limit, quiz.max_attempts, quiz.question_count or len(quiz.questions))
    )
    for position, question in enumerate(quiz.questions, 1):
        conn.execute(
            """INSERT INTO quiz_questions
               (id, quiz_id, question, question_type, options, correct_answer,
                explanation, points, position)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (question.id, quiz.id, question.question, question.question_type,
             json.dumps(question.options, ensure_ascii=False),
             json.dumps(question.correct_answer, ensure_ascii=False)
             if question.correct_answer is not None else None,
             question.explanation, question.points, question.order or position)
        )


# -----------------------------------------------------------------------------
# Integrity Checks
# -----------------------------------------------------------------------------

def run_integrity_checks(conn: sqlite3.Connection) -> list[str]:
    """Run integrity checks on a course database."""
    issues = []

    # Check: lessons only under lessons sections
    cursor = conn.execute("""
        SELECT l.id, s.id, s.type FROM lessons l
        JOIN sections s ON l.section_id = s.id
        WHERE s.type != 'lessons'
    """)
    for row in cursor:
        issues.append(f"Lesson {row[0]} is attached to {row[2]} section {row[1]}")

    # Check: quizzes / assignments only under matching sections
    for table, section_type in (("quizzes", "quiz"), ("assignments", "assignment")):
        cursor = conn.execute(f"""
            SELECT c.id, s.id, s.type FROM {table} c
            JOIN sections s ON c.section_id = s.id
            WHERE s.type != '{section_type}'
        """)
        for row in cursor:
            issues.append(f"{section_type.capitalize()} {row[0]} is attached to {row[2]} section {row[1]}")

    # Check: denormalised lesson course id agrees with its section
    cursor = conn.execute("""
        SELECT l.id FROM lessons l
        JOIN sections s ON l.section_id = s.id
        WHERE l.course_id != s.course_id
    """)
    for row in cursor:
        issues.append(f"Lesson {row[0]} course_id differs from its section's course")

    # Check: lessons sections have at least one lesson
    cursor = conn.execute("""
        SELECT s.id FROM sections s
        LEFT JOIN lessons l ON s.id = l.section_id
        WHERE s.type = 'lessons'
        GROUP BY s.id
        HAVING COUNT(l.id) = 0
    """)
    for row in cursor:
        issues.append(f"Section {row[0]} has no lessons")

    # Check: quiz / assignment sections have their content authored
    for table, section_type in (("quizzes", "quiz"), ("assignments", "assignment")):
        cursor = conn.execute(f"""
            SELECT s.id FROM sections s
            LEFT JOIN {table} c ON s.id = c.section_id
            WHERE s.type = '{section_type}' AND c.id IS NULL
        """)
        for row in cursor:
            issues.append(f"Section {row[0]} has no {section_type} yet")

    return issues


def compute_stats(conn: sqlite3.Connection) -> dict:
    """Compute course database statistics."""
    return {
        "compiled_at": datetime.now().isoformat(),
        "total_courses": conn.execute("SELECT COUNT(*) FROM courses").fetchone()[0],
        "total_sections": conn.execute("SELECT COUNT(*) FROM sections").fetchone()[0],
        "total_lessons": conn.execute("SELECT COUNT(*) FROM lessons").fetchone()[0],
        "total_quizzes": conn.execute("SELECT COUNT(*) FROM quizzes").fetchone()[0],
        "total_assignments": conn.execute("SELECT COUNT(*) FROM assignments").fetchone()[0],
        "total_enrollments": conn.execute("SELECT COUNT(*) FROM enrollments").fetchone()[0],
    }
