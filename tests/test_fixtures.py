"""
Course fixture utility tests.
"""

import sqlite3
from pathlib import Path

import pytest
from pydantic import ValidationError

from courselearn.classroom import CourseStore, CurriculumLoader
from courselearn.schemas import AppUser
from courselearn.utils import (
    CompletionFixture,
    EnrollmentFixture,
    LessonFixture,
    SectionFixture,
    compute_stats,
    create_database,
    load_course_fixture,
    populate_course,
    run_integrity_checks,
)

SAMPLE_COURSE = Path(__file__).parent.parent / "data" / "sample_course.yaml"


class TestLoadCourseFixture:
    """Test YAML loading."""

    def test_sample_course(self):
        fixture = load_course_fixture(SAMPLE_COURSE)
        assert fixture.course.slug == "python-basics"
        assert [s.type.value for s in fixture.sections] == ["lessons", "quiz", "assignment"]
        assert len(fixture.sections[0].lessons) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_course_fixture(tmp_path / "missing.yaml")

    def test_invalid_course(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("course:\n  id: c\n  title: Bad\n  slug: not a slug\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_course_fixture(path)


class TestIdentifierChecks:
    """Test that ids which could never be addressed are rejected at load time."""

    def test_lesson_id_with_dot_rejected(self, tmp_path):
        path = tmp_path / "dotted.yaml"
        path.write_text(
            "course:\n  id: c\n  title: C\n  slug: c\n"
            "sections:\n"
            "  - id: sec-1\n    title: S\n    type: lessons\n    order: 1\n"
            "    lessons:\n"
            "      - id: intro.1\n        title: Intro\n        slug: intro\n        order: 1\n",
            encoding="utf-8",
        )
        with pytest.raises(ValidationError, match="intro.1"):
            load_course_fixture(path)

    @pytest.mark.parametrize("model,payload", [
        (LessonFixture, {"id": "l 1", "title": "L", "slug": "l1", "order": 1}),
        (LessonFixture, {"id": "l1", "title": "L", "slug": "l/1", "order": 1}),
        (SectionFixture, {"id": "sec.1", "title": "S", "order": 1}),
        (EnrollmentFixture, {"id": "e1", "app_user_id": "user 1"}),
        (CompletionFixture, {"app_user_id": "u1", "lesson_id": "../l1"}),
    ])
    def test_fixture_ids_validated(self, model, payload):
        with pytest.raises(ValidationError):
            model(**payload)

    def test_profile_account_id_validated(self):
        with pytest.raises(ValidationError):
            AppUser(id="app-1", user_id="acct 1")


class TestSectionFixture:
    """Test that section children must match the section type."""

    def test_quiz_section_cannot_hold_lessons(self):
        with pytest.raises(ValidationError):
            SectionFixture(
                id="s", title="S", type="quiz", order=1,
                lessons=[{"id": "l", "title": "L", "slug": "l", "order": 1}],
            )

    def test_lessons_section_cannot_hold_assignment(self):
        with pytest.raises(ValidationError):
            SectionFixture(
                id="s", title="S", type="lessons", order=1,
                assignment={"id": "a", "title": "A"},
            )


class TestPopulate:
    """Test building a database from fixtures."""

    def test_sample_course_loads_end_to_end(self, tmp_path):
        db_path = tmp_path / "sample.db"
        conn = create_database(db_path)
        try:
            populate_course(conn, load_course_fixture(SAMPLE_COURSE))
            assert run_integrity_checks(conn) == []
            stats = compute_stats(conn)
        finally:
            conn.close()

        assert stats["total_courses"] == 1
        assert stats["total_lessons"] == 2
        assert stats["total_quizzes"] == 1
        assert stats["total_assignments"] == 1

        data = CurriculumLoader(CourseStore(db_path)).load("python-basics", "demo")
        assert [item.id for item in data.all_items] == [
            "lesson-install", "lesson-repl", "sec-checkpoint-quiz", "sec-first-script",
        ]

    def test_overwrite(self, tmp_path):
        db_path = tmp_path / "sample.db"
        conn = create_database(db_path)
        populate_course(conn, load_course_fixture(SAMPLE_COURSE))
        conn.close()

        conn = create_database(db_path, overwrite=True)
        try:
            assert compute_stats(conn)["total_courses"] == 0
        finally:
            conn.close()

    def test_duplicate_course_rejected(self, tmp_path):
        conn = create_database(tmp_path / "dup.db")
        try:
            fixture = load_course_fixture(SAMPLE_COURSE)
            populate_course(conn, fixture)
            with pytest.raises(sqlite3.IntegrityError):
                populate_course(conn, fixture)
            assert compute_stats(conn)["total_courses"] == 1
        finally:
            conn.close()


class TestIntegrityChecks:
    """Test structural checks on a populated database."""

    def test_clean_scenario(self, db_path):
        conn = sqlite3.connect(db_path)
        try:
            assert run_integrity_checks(conn) == []
        finally:
            conn.close()

    def test_unauthored_sections_reported(self, tmp_path, scenario):
        scenario.sections[1].quiz = None
        scenario.sections[2].assignment = None
        conn = create_database(tmp_path / "partial.db")
        try:
            populate_course(conn, scenario)
            issues = run_integrity_checks(conn)
        finally:
            conn.close()

        assert "Section sec-quiz has no quiz yet" in issues
        assert "Section sec-assignment has no assignment yet" in issues

    def test_empty_lessons_section_reported(self, tmp_path, scenario):
        scenario.sections[0].lessons = []
        conn = create_database(tmp_path / "empty.db")
        try:
            populate_course(conn, scenario)
            issues = run_integrity_checks(conn)
        finally:
            conn.close()

        assert issues == ["Section sec-lessons has no lessons"]

    def test_lesson_under_quiz_section_reported(self, tmp_path, scenario):
        conn = create_database(tmp_path / "misplaced.db")
        try:
            populate_course(conn, scenario)
            conn.execute(
                """INSERT INTO lessons (id, section_id, course_id, title, slug, position)
                   VALUES ('stray', 'sec-quiz', 'course-1', 'Stray', 'stray', 1)"""
            )
            issues = run_integrity_checks(conn)
        finally:
            conn.close()

        assert "Lesson stray is attached to quiz section sec-quiz" in issues
