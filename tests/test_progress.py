"""
CompletionTracker tests.

Tests the completion write path, its access checks and the progress
roll-up onto the enrollment row.
"""

from courselearn.schemas import CompletionStatus, CourseProgress


class TestMarkComplete:
    """Test marking lessons complete."""

    def test_mark_complete(self, tracker, store):
        result = tracker.mark_complete("intro-course", "lesson-1", "acct-1")

        assert result.success
        assert result.status == CompletionStatus.COMPLETED
        assert result.progress == CourseProgress(completed=1, total=2, percentage=50, is_complete=False)

        record = store.get_completion_record("app-user-1", "lesson-1")
        assert record.completed is True
        assert record.completed_at is not None

    def test_mark_complete_is_idempotent(self, tracker, store):
        tracker.mark_complete("intro-course", "lesson-1", "acct-1")
        first_at = store.get_completion_record("app-user-1", "lesson-1").completed_at

        result = tracker.mark_complete("intro-course", "lesson-1", "acct-1")

        assert result.success
        assert result.status == CompletionStatus.ALREADY_COMPLETED
        assert result.progress.completed == 1
        assert store.count_completed_course_lessons("app-user-1", "course-1") == 1
        assert store.get_completion_record("app-user-1", "lesson-1").completed_at == first_at

    def test_completion_visible_to_loader(self, tracker, loader):
        tracker.mark_complete("intro-course", "lesson-2", "acct-1")
        data = loader.load("intro-course", "acct-1")
        assert data.completed_items == 1
        assert data.all_items[1].is_completed is True

    def test_lesson_from_other_course(self, tracker, store):
        result = tracker.mark_complete("intro-course", "other-lesson-1", "acct-1")
        assert not result.success
        assert result.status == CompletionStatus.LESSON_NOT_FOUND
        assert store.get_completion_record("app-user-1", "other-lesson-1") is None

    def test_quiz_section_id_is_not_a_lesson(self, tracker):
        result = tracker.mark_complete("intro-course", "sec-quiz", "acct-1")
        assert result.status == CompletionStatus.LESSON_NOT_FOUND

    def test_unknown_lesson(self, tracker):
        result = tracker.mark_complete("intro-course", "lesson-404", "acct-1")
        assert result.status == CompletionStatus.LESSON_NOT_FOUND

    def test_not_enrolled(self, tracker, store):
        result = tracker.mark_complete("intro-course", "lesson-1", "acct-2")
        assert result.status == CompletionStatus.NOT_ENROLLED
        assert result.progress is None
        assert store.get_completion_record("app-user-2", "lesson-1") is None

    def test_cancelled_enrollment(self, tracker):
        result = tracker.mark_complete("intro-course", "lesson-1", "acct-3")
        assert result.status == CompletionStatus.NOT_ENROLLED

    def test_no_profile(self, tracker):
        result = tracker.mark_complete("intro-course", "lesson-1", "acct-ghost")
        assert result.status == CompletionStatus.PROFILE_NOT_FOUND

    def test_unknown_course(self, tracker):
        result = tracker.mark_complete("no-such-course", "lesson-1", "acct-1")
        assert result.status == CompletionStatus.COURSE_NOT_FOUND

    def test_malformed_identifiers(self, tracker):
        assert tracker.mark_complete("intro course", "lesson-1", "acct-1").status == CompletionStatus.INVALID
        assert tracker.mark_complete("intro-course", "", "acct-1").status == CompletionStatus.INVALID
        assert tracker.mark_complete("intro-course", "lesson-1", "a/b").status == CompletionStatus.INVALID

    def test_failure_messages(self, tracker):
        result = tracker.mark_complete("intro-course", "lesson-1", "acct-2")
        assert result.message == "You must be enrolled in this course"


class TestEnrollmentRollup:
    """Test that course progress is mirrored onto the enrollment."""

    def test_partial_progress(self, tracker, store):
        tracker.mark_complete("intro-course", "lesson-1", "acct-1")

        enrollment = store.get_enrollment("app-user-1", "course-1")
        assert enrollment.progress_percent == 50
        assert enrollment.last_accessed_at is not None
        assert enrollment.completed_at is None

    def test_course_completion(self, tracker, store):
        tracker.mark_complete("intro-course", "lesson-1", "acct-1")
        result = tracker.mark_complete("intro-course", "lesson-2", "acct-1")

        assert result.progress.is_complete
        assert result.progress.percentage == 100

        enrollment = store.get_enrollment("app-user-1", "course-1")
        assert enrollment.progress_percent == 100
        assert enrollment.completed_at is not None

    def test_other_course_untouched(self, tracker, store):
        tracker.mark_complete("intro-course", "lesson-1", "acct-1")
        assert store.get_enrollment("app-user-1", "course-2").progress_percent == 0


class TestUpdateProgress:
    """Test playback progress updates."""

    def test_watched_seconds_without_completion(self, tracker, store):
        result = tracker.update_progress("intro-course", "acct-1", "lesson-1", completed=False, watched_seconds=42)

        assert result.success
        assert result.status == CompletionStatus.UPDATED
        assert result.progress.completed == 0

        record = store.get_completion_record("app-user-1", "lesson-1")
        assert record.completed is False
        assert record.watched_seconds == 42
        assert record.last_watched_at is not None
        assert record.completed_at is None

    def test_completion_through_update(self, tracker, store):
        tracker.update_progress("intro-course", "acct-1", "lesson-1", completed=False, watched_seconds=10)
        result = tracker.update_progress("intro-course", "acct-1", "lesson-1", completed=True, watched_seconds=290)

        assert result.progress.completed == 1
        record = store.get_completion_record("app-user-1", "lesson-1")
        assert record.completed is True
        assert record.watched_seconds == 290
        assert record.completed_at is not None

    def test_never_uncompletes(self, tracker, store):
        tracker.mark_complete("intro-course", "lesson-1", "acct-1")
        completed_at = store.get_completion_record("app-user-1", "lesson-1").completed_at

        tracker.update_progress("intro-course", "acct-1", "lesson-1", completed=False, watched_seconds=5)

        record = store.get_completion_record("app-user-1", "lesson-1")
        assert record.completed is True
        assert record.completed_at == completed_at
        assert record.watched_seconds == 5

    def test_missing_seconds_keep_previous_value(self, tracker, store):
        tracker.update_progress("intro-course", "acct-1", "lesson-1", completed=False, watched_seconds=30)
        tracker.update_progress("intro-course", "acct-1", "lesson-1", completed=True)
        assert store.get_completion_record("app-user-1", "lesson-1").watched_seconds == 30

    def test_negative_seconds_rejected(self, tracker, store):
        result = tracker.update_progress("intro-course", "acct-1", "lesson-1", completed=False, watched_seconds=-1)
        assert result.status == CompletionStatus.INVALID
        assert store.get_completion_record("app-user-1", "lesson-1") is None

    def test_access_checks_apply(self, tracker):
        result = tracker.update_progress("intro-course", "acct-2", "lesson-1", completed=True)
        assert result.status == CompletionStatus.NOT_ENROLLED


class TestProgressReads:
    """Test progress queries."""

    def test_calculate_progress(self, tracker):
        assert tracker.calculate_progress("course-1", "app-user-1") == CourseProgress(
            completed=0, total=2, percentage=0, is_complete=False,
        )

    def test_get_course_progress(self, tracker):
        tracker.mark_complete("intro-course", "lesson-2", "acct-1")
        tracker.update_progress("intro-course", "acct-1", "lesson-1", completed=False, watched_seconds=12)

        records = tracker.get_course_progress("intro-course", "acct-1")
        assert [(r.lesson_id, r.completed) for r in records] == [("lesson-1", False), ("lesson-2", True)]

    def test_get_course_progress_scoped_to_course(self, tracker):
        tracker.mark_complete("other-course", "other-lesson-1", "acct-1")
        assert tracker.get_course_progress("intro-course", "acct-1") == []
        assert len(tracker.get_course_progress("other-course", "acct-1")) == 1

    def test_get_course_progress_denied(self, tracker):
        assert tracker.get_course_progress("intro-course", "acct-2") is None
        assert tracker.get_course_progress("intro-course", "acct-ghost") is None
        assert tracker.get_course_progress("bad slug", "acct-1") is None

    def test_course_without_lessons(self, tracker):
        assert tracker.calculate_progress("course-missing", "app-user-1").percentage == 0
