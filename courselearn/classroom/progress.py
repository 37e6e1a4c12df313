"""
CompletionTracker - Record lesson completion and roll progress up to enrollments.

Stores per-(user, lesson) state in the lesson_progress table:
- Completion flag and completion time
- Watched seconds
The course progress percentage is mirrored onto the enrollment row.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from courselearn.schemas import (
    AppUser,
    CompletionRecord,
    CompletionResult,
    CompletionStatus,
    Course,
    CourseProgress,
    Enrollment,
    validate_identifier,
)

from .store import CourseStore

logger = logging.getLogger(__name__)


@dataclass
class _Gate:
    """Outcome of the shared profile / course / lesson / enrollment checks."""
    status: Optional[CompletionStatus] = None
    app_user: Optional[AppUser] = None
    course: Optional[Course] = None
    enrollment: Optional[Enrollment] = None


class CompletionTracker:
    """
    Track lesson completion in the course database.

    Only lessons-type items can be completed here; quiz and assignment
    progress belongs to their own attempt/submission flows. Callers reload
    the curriculum after a successful write instead of patching state.
    """

    def __init__(self, store: CourseStore):
        """
        Initialize tracker.

        Args:
            store: CourseStore sharing the same database
        """
        self.store = store

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.store.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _check_access(self, course_slug: str, user_id: str, lesson_id: Optional[str] = None) -> _Gate:
        try:
            validate_identifier(course_slug, "course_slug")
            validate_identifier(user_id, "user_id")
            if lesson_id is not None:
                validate_identifier(lesson_id, "lesson_id")
        except ValueError as e:
            logger.debug("Rejected progress request: %s", e)
            return _Gate(status=CompletionStatus.INVALID)

        app_user = self.store.get_app_user(user_id)
        if app_user is None:
            return _Gate(status=CompletionStatus.PROFILE_NOT_FOUND)

        course = self.store.get_course_by_slug(course_slug)
        if course is None:
            return _Gate(status=CompletionStatus.COURSE_NOT_FOUND)

        if lesson_id is not None and self.store.get_lesson_in_course(lesson_id, course.id) is None:
            return _Gate(status=CompletionStatus.LESSON_NOT_FOUND)

        enrollment = self.store.get_enrollment(app_user.id, course.id)
        if enrollment is None or not enrollment.grants_access:
            return _Gate(status=CompletionStatus.NOT_ENROLLED)

        return _Gate(app_user=app_user, course=course, enrollment=enrollment)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def mark_complete(self, course_slug: str, lesson_id: str, user_id: str) -> CompletionResult:
        """
        Mark a lesson complete for a student.

        Marking an already-completed lesson is a successful no-op.

        Args:
            course_slug: Slug of the course the lesson must belong to
            lesson_id: Lesson id (quiz/assignment section ids are rejected)
            user_id: Platform account id of the student

        Returns:
            CompletionResult with the course progress on success
        """
        gate = self._check_access(course_slug, user_id, lesson_id)
        if gate.status is not None:
            return CompletionResult(status=gate.status, message=_MESSAGES[gate.status])

        existing = self.store.get_completion_record(gate.app_user.id, lesson_id)
        if existing is not None and existing.completed:
            return CompletionResult(
                status=CompletionStatus.ALREADY_COMPLETED,
                message=_MESSAGES[CompletionStatus.ALREADY_COMPLETED],
                progress=self.calculate_progress(gate.course.id, gate.app_user.id),
            )

        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """INSERT INTO lesson_progress
                     (app_user_id, lesson_id, completed, completed_at, created_at, updated_at)
                   VALUES (?, ?, 1, ?, ?, ?)
                   ON CONFLICT(app_user_id, lesson_id) DO UPDATE SET
                     completed = 1,
                     completed_at = COALESCE(completed_at, ?),
                     updated_at = ?""",
                (gate.app_user.id, lesson_id, now, now, now, now, now)
            )
            conn.commit()
        finally:
            conn.close()

        progress = self._sync_enrollment(gate)
        logger.info(
            "Lesson %s completed by %s (%d/%d)",
            lesson_id, gate.app_user.id, progress.completed, progress.total,
        )
        return CompletionResult(
            status=CompletionStatus.COMPLETED,
            message=_MESSAGES[CompletionStatus.COMPLETED],
            progress=progress,
        )

    def update_progress(
        self,
        course_slug: str,
        user_id: str,
        lesson_id: str,
        completed: bool,
        watched_seconds: Optional[int] = None,
    ) -> CompletionResult:
        """
        Record playback progress for a lesson.

        A completed lesson never goes back to incomplete; completed_at is set
        on the first transition only.
        """
        if watched_seconds is not None and watched_seconds < 0:
            return CompletionResult(status=CompletionStatus.INVALID, message="watched_seconds must be >= 0")

        gate = self._check_access(course_slug, user_id, lesson_id)
        if gate.status is not None:
            return CompletionResult(status=gate.status, message=_MESSAGES[gate.status])

        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """INSERT INTO lesson_progress
                     (app_user_id, lesson_id, completed, watched_seconds,
                      last_watched_at, completed_at, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(app_user_id, lesson_id) DO UPDATE SET
                     completed = MAX(completed, excluded.completed),
                     watched_seconds = COALESCE(?, watched_seconds),
                     last_watched_at = excluded.last_watched_at,
                     completed_at = CASE
                       WHEN completed = 0 AND excluded.completed = 1 THEN excluded.completed_at
                       ELSE completed_at
                     END,
                     updated_at = excluded.updated_at""",
                (
                    gate.app_user.id, lesson_id, int(completed), watched_seconds or 0,
                    now, now if completed else None, now, now,
                    watched_seconds,
                )
            )
            conn.commit()
        finally:
            conn.close()

        return CompletionResult(
            status=CompletionStatus.UPDATED,
            message=_MESSAGES[CompletionStatus.UPDATED],
            progress=self._sync_enrollment(gate),
        )

    def _sync_enrollment(self, gate: _Gate) -> CourseProgress:
        """Mirror course progress onto the enrollment row."""
        progress = self.calculate_progress(gate.course.id, gate.app_user.id)

        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """UPDATE enrollments SET
                     progress_percent = ?,
                     last_accessed_at = ?,
                     completed_at = CASE
                       WHEN ? = 1 AND completed_at IS NULL THEN ?
                       ELSE completed_at
                     END
                   WHERE id = ?""",
                (progress.percentage, now, int(progress.is_complete), now, gate.enrollment.id)
            )
            conn.commit()
        finally:
            conn.close()

        return progress

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def calculate_progress(self, course_id: str, app_user_id: str) -> CourseProgress:
        """Completed vs total lessons of a course (quizzes/assignments excluded)."""
        return CourseProgress.from_counts(
            completed=self.store.count_completed_course_lessons(app_user_id, course_id),
            total=self.store.count_course_lessons(course_id),
        )

    def get_course_progress(self, course_slug: str, user_id: str) -> Optional[list[CompletionRecord]]:
        """
        Get the student's completion records for one course.

        Returns None on any access failure.
        """
        gate = self._check_access(course_slug, user_id)
        if gate.status is not None:
            return None
        return self.store.get_course_completion_records(gate.app_user.id, gate.course.id)


_MESSAGES = {
    CompletionStatus.COMPLETED: "Lesson marked as complete",
    CompletionStatus.ALREADY_COMPLETED: "Lesson already completed",
    CompletionStatus.UPDATED: "Progress updated",
    CompletionStatus.INVALID: "Invalid identifier",
    CompletionStatus.PROFILE_NOT_FOUND: "Profile not found",
    CompletionStatus.COURSE_NOT_FOUND: "Course not found",
    CompletionStatus.LESSON_NOT_FOUND: "Lesson not found",
    CompletionStatus.NOT_ENROLLED: "You must be enrolled in this course",
}
