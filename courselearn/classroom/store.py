"""
CourseStore - Read access to the course database.

Provides read-only access to:
- Courses, app users and enrollments
- Sections and their lessons / quiz / assignment
- Lesson completion records

Every method opens its own connection, so a store can be shared across threads.
"""

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from courselearn.schemas import (
    AppUser,
    Assignment,
    CompletionRecord,
    Course,
    Enrollment,
    EnrollmentStatus,
    Lesson,
    LessonContent,
    Quiz,
    QuizQuestion,
    SectionType,
)


# -----------------------------------------------------------------------------
# SQLite Schema
# -----------------------------------------------------------------------------

SCHEMA = """
CREATE TABLE IF NOT EXISTS courses (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    description TEXT NOT NULL DEFAULT '',
    thumbnail TEXT
);

-- App-level profiles, keyed by the platform account id
CREATE TABLE IF NOT EXISTS app_users (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL UNIQUE,
    name TEXT,
    email TEXT
);

CREATE TABLE IF NOT EXISTS sections (
    id TEXT PRIMARY KEY,
    course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT,
    type TEXT NOT NULL DEFAULT 'lessons' CHECK (type IN ('lessons', 'quiz', 'assignment')),
    position INTEGER NOT NULL,
    UNIQUE (course_id, position)
);

CREATE TABLE IF NOT EXISTS lessons (
    id TEXT PRIMARY KEY,
    section_id TEXT NOT NULL REFERENCES sections(id) ON DELETE CASCADE,
    course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    slug TEXT NOT NULL,
    position INTEGER NOT NULL,
    UNIQUE (section_id, position)
);

CREATE TABLE IF NOT EXISTS lesson_content (
    lesson_id TEXT PRIMARY KEY REFERENCES lessons(id) ON DELETE CASCADE,
    video_url TEXT,
    video_playback_id TEXT,
    duration_minutes INTEGER DEFAULT 0,
    is_free INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS quizzes (
    id TEXT PRIMARY KEY,
    section_id TEXT NOT NULL UNIQUE REFERENCES sections(id) ON DELETE CASCADE,
    course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT,
    passing_score INTEGER NOT NULL DEFAULT 70,
    time_limit INTEGER,
    max_attempts INTEGER DEFAULT 3,
    question_count INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS quiz_questions (
    id TEXT PRIMARY KEY,
    quiz_id TEXT NOT NULL REFERENCES quizzes(id) ON DELETE CASCADE,
    question TEXT NOT NULL,
    question_type TEXT DEFAULT 'multiple_choice',
    options JSON NOT NULL DEFAULT '[]',
    correct_answer JSON,
    explanation TEXT,
    points INTEGER NOT NULL DEFAULT 1,
    position INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS assignments (
    id TEXT PRIMARY KEY,
    section_id TEXT NOT NULL UNIQUE REFERENCES sections(id) ON DELETE CASCADE,
    course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT,
    instructions TEXT,
    max_score INTEGER NOT NULL DEFAULT 100,
    due_date TEXT
);

CREATE TABLE IF NOT EXISTS enrollments (
    id TEXT PRIMARY KEY,
    app_user_id TEXT NOT NULL REFERENCES app_users(id) ON DELETE CASCADE,
    course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    status TEXT NOT NULL DEFAULT 'active'
        CHECK (status IN ('active', 'completed', 'cancelled', 'expired')),
    progress_percent INTEGER NOT NULL DEFAULT 0,
    enrolled_at TEXT,
    last_accessed_at TEXT,
    completed_at TEXT,
    UNIQUE (app_user_id, course_id)
);

-- One row per (user, lesson); only lessons-type items are tracked here
CREATE TABLE IF NOT EXISTS lesson_progress (
    app_user_id TEXT NOT NULL REFERENCES app_users(id) ON DELETE CASCADE,
    lesson_id TEXT NOT NULL REFERENCES lessons(id) ON DELETE CASCADE,
    completed INTEGER NOT NULL DEFAULT 0,
    watched_seconds INTEGER DEFAULT 0,
    last_watched_at TEXT,
    completed_at TEXT,
    created_at TEXT,
    updated_at TEXT,
    PRIMARY KEY (app_user_id, lesson_id)
);

CREATE INDEX IF NOT EXISTS idx_sections_course_position ON sections(course_id, position);
CREATE INDEX IF NOT EXISTS idx_lessons_section_position ON lessons(section_id, position);
CREATE INDEX IF NOT EXISTS idx_lessons_course ON lessons(course_id);
CREATE INDEX IF NOT EXISTS idx_quiz_questions_quiz ON quiz_questions(quiz_id, position);
CREATE INDEX IF NOT EXISTS idx_lesson_progress_user ON lesson_progress(app_user_id);
"""


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class SectionRow:
    """Section row before its children are fetched."""
    id: str
    course_id: str
    title: str
    description: Optional[str]
    type: SectionType
    order: int


class CourseStore:
    """
    Read-only access to the course database.

    Writes to completion state go through CompletionTracker; authoring
    content happens through the seeding utilities.
    """

    def __init__(self, db_path: Path):
        """
        Initialize store.

        Args:
            db_path: Path to the sqlite database

        Raises:
            FileNotFoundError: If the database doesn't exist
        """
        self.db_path = Path(db_path)
        if not self.db_path.exists():
            raise FileNotFoundError(f"Course database not found: {db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    # -------------------------------------------------------------------------
    # Courses, users, enrollments
    # -------------------------------------------------------------------------

    def get_course_by_slug(self, slug: str) -> Optional[Course]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT id, title, slug, description, thumbnail FROM courses WHERE slug = ?",
                (slug,)
            ).fetchone()
            if not row:
                return None
            return Course(
                id=row["id"],
                title=row["title"],
                slug=row["slug"],
                description=row["description"] or "",
                thumbnail=row["thumbnail"],
            )
        finally:
            conn.close()

    def get_app_user(self, user_id: str) -> Optional[AppUser]:
        """Get the app profile for a platform account id."""
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT id, user_id, name, email FROM app_users WHERE user_id = ?",
                (user_id,)
            ).fetchone()
            if not row:
                return None
            return AppUser(
                id=row["id"],
                user_id=row["user_id"],
                name=row["name"],
                email=row["email"],
            )
        finally:
            conn.close()

    def get_enrollment(self, app_user_id: str, course_id: str) -> Optional[Enrollment]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                """SELECT id, app_user_id, course_id, status, progress_percent,
                          enrolled_at, last_accessed_at, completed_at
                   FROM enrollments
                   WHERE app_user_id = ? AND course_id = ?""",
                (app_user_id, course_id)
            ).fetchone()
            if not row:
                return None
            return Enrollment(
                id=row["id"],
                app_user_id=row["app_user_id"],
                course_id=row["course_id"],
                status=EnrollmentStatus(row["status"]),
                progress_percent=row["progress_percent"],
                enrolled_at=_parse_datetime(row["enrolled_at"]),
                last_accessed_at=_parse_datetime(row["last_accessed_at"]),
                completed_at=_parse_datetime(row["completed_at"]),
            )
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def get_section_rows(self, course_id: str) -> list[SectionRow]:
        """Get all sections of a course ordered by position."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT id, course_id, title, description, type, position
                   FROM sections
                   WHERE course_id = ?
                   ORDER BY position""",
                (course_id,)
            )
            return [
                SectionRow(
                    id=row["id"],
                    course_id=row["course_id"],
                    title=row["title"],
                    description=row["description"],
                    type=SectionType(row["type"]),
                    order=row["position"],
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    def get_lessons_for_section(self, section_id: str) -> list[Lesson]:
        """Get lessons of a section with their video content, ordered by position."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT l.id, l.section_id, l.course_id, l.title, l.slug, l.position,
                          c.lesson_id AS content_lesson_id, c.video_url,
                          c.video_playback_id, c.duration_minutes, c.is_free
                   FROM lessons l
                   LEFT JOIN lesson_content c ON c.lesson_id = l.id
                   WHERE l.section_id = ?
                   ORDER BY l.position""",
                (section_id,)
            )
            return [
                Lesson(
                    id=row["id"],
                    title=row["title"],
                    slug=row["slug"],
                    order=row["position"],
                    section_id=row["section_id"],
                    course_id=row["course_id"],
                    content=LessonContent(
                        video_url=row["video_url"],
                        video_playback_id=row["video_playback_id"],
                        duration_minutes=row["duration_minutes"],
                        is_free=bool(row["is_free"]),
                    ) if row["content_lesson_id"] else None,
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def get_lesson_in_course(self, lesson_id: str, course_id: str) -> Optional[Lesson]:
        """
        Get a lesson only if it sits in a lessons-type section of the course.

        Quiz and assignment section ids never match here.
        """
        conn = self._get_connection()
        try:
            row = conn.execute(
                """SELECT l.id, l.section_id, l.course_id, l.title, l.slug, l.position
                   FROM lessons l
                   JOIN sections s ON l.section_id = s.id
                   WHERE l.id = ? AND s.course_id = ? AND s.type = 'lessons'""",
                (lesson_id, course_id)
            ).fetchone()
            if not row:
                return None
            return Lesson(
                id=row["id"],
                title=row["title"],
                slug=row["slug"],
                order=row["position"],
                section_id=row["section_id"],
                course_id=row["course_id"],
            )
        finally:
            conn.close()

    def count_course_lessons(self, course_id: str) -> int:
        """Count lessons in lessons-type sections of a course."""
        conn = self._get_connection()
        try:
            return conn.execute(
                """SELECT COUNT(*) AS count
                   FROM lessons l
                   JOIN sections s ON l.section_id = s.id
                   WHERE s.course_id = ? AND s.type = 'lessons'""",
                (course_id,)
            ).fetchone()["count"]
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Quizzes and assignments
    # -------------------------------------------------------------------------

    def get_quiz_for_section(self, section_id: str) -> Optional[Quiz]:
        """
        Get the quiz of a section.

        question_count is the live number of questions, falling back to the
        stored count when no question rows exist yet.
        """
        conn = self._get_connection()
        try:
            row = conn.execute(
                """SELECT q.id, q.section_id, q.course_id, q.title, q.description,
                          q.passing_score, q.time_limit, q.max_attempts, q.question_count,
                          (SELECT COUNT(*) FROM quiz_questions qq WHERE qq.quiz_id = q.id)
                            AS live_question_count
                   FROM quizzes q
                   WHERE q.section_id = ?""",
                (section_id,)
            ).fetchone()
            if not row:
                return None
            return Quiz(
                id=row["id"],
                section_id=row["section_id"],
                course_id=row["course_id"],
                title=row["title"],
                description=row["description"],
                passing_score=row["passing_score"],
                time_limit=row["time_limit"],
                max_attempts=row["max_attempts"],
                question_count=row["live_question_count"] or row["question_count"] or 0,
            )
        finally:
            conn.close()

    def get_quiz_questions(self, quiz_id: str) -> list[QuizQuestion]:
        """Get quiz questions ordered by position."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT id, question, question_type, options, correct_answer,
                          explanation, points, position
                   FROM quiz_questions
                   WHERE quiz_id = ?
                   ORDER BY position""",
                (quiz_id,)
            )
            return [
                QuizQuestion(
                    id=row["id"],
                    question=row["question"],
                    question_type=row["question_type"] or "multiple_choice",
                    options=json.loads(row["options"] or "[]"),
                    correct_answer=json.loads(row["correct_answer"]) if row["correct_answer"] else None,
                    explanation=row["explanation"],
                    points=row["points"],
                    order=row["position"],
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def get_assignment_for_section(self, section_id: str) -> Optional[Assignment]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                """SELECT id, section_id, course_id, title, description,
                          instructions, max_score, due_date
                   FROM assignments
                   WHERE section_id = ?""",
                (section_id,)
            ).fetchone()
            if not row:
                return None
            return Assignment(
                id=row["id"],
                section_id=row["section_id"],
                course_id=row["course_id"],
                title=row["title"],
                description=row["description"],
                instructions=row["instructions"],
                max_score=row["max_score"],
                due_date=_parse_datetime(row["due_date"]),
            )
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Completion records
    # -------------------------------------------------------------------------

    def get_completed_lesson_ids(self, app_user_id: str) -> set[str]:
        """Get set of lesson ids the user has completed, across all courses."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT lesson_id FROM lesson_progress
                   WHERE app_user_id = ? AND completed = 1""",
                (app_user_id,)
            )
            return {row["lesson_id"] for row in cursor.fetchall()}
        finally:
            conn.close()

    def get_completion_record(self, app_user_id: str, lesson_id: str) -> Optional[CompletionRecord]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                """SELECT app_user_id, lesson_id, completed, watched_seconds,
                          last_watched_at, completed_at
                   FROM lesson_progress
                   WHERE app_user_id = ? AND lesson_id = ?""",
                (app_user_id, lesson_id)
            ).fetchone()
            return self._row_to_record(row) if row else None
        finally:
            conn.close()

    def get_course_completion_records(self, app_user_id: str, course_id: str) -> list[CompletionRecord]:
        """Get the user's completion records for lessons of one course."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT p.app_user_id, p.lesson_id, p.completed, p.watched_seconds,
                          p.last_watched_at, p.completed_at
                   FROM lesson_progress p
                   JOIN lessons l ON p.lesson_id = l.id
                   WHERE p.app_user_id = ? AND l.course_id = ?
                   ORDER BY p.lesson_id""",
                (app_user_id, course_id)
            )
            return [self._row_to_record(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def count_completed_course_lessons(self, app_user_id: str, course_id: str) -> int:
        conn = self._get_connection()
        try:
            return conn.execute(
                """SELECT COUNT(*) AS count
                   FROM lesson_progress p
                   JOIN lessons l ON p.lesson_id = l.id
                   JOIN sections s ON l.section_id = s.id
                   WHERE p.app_user_id = ? AND s.course_id = ?
                     AND s.type = 'lessons' AND p.completed = 1""",
                (app_user_id, course_id)
            ).fetchone()["count"]
        finally:
            conn.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> CompletionRecord:
        return CompletionRecord(
            app_user_id=row["app_user_id"],
            lesson_id=row["lesson_id"],
            completed=bool(row["completed"]),
            watched_seconds=row["watched_seconds"] or 0,
            last_watched_at=_parse_datetime(row["last_watched_at"]),
            completed_at=_parse_datetime(row["completed_at"]),
        )
