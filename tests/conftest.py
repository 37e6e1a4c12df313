"""Shared fixtures: small course databases built through the seeding utilities."""

import pytest

from courselearn.classroom import CompletionTracker, CourseStore, CurriculumLoader
from courselearn.schemas import AppUser, Course, LessonContent, QuizQuestion
from courselearn.utils import (
    AssignmentFixture,
    CourseFixture,
    EnrollmentFixture,
    LessonFixture,
    QuizFixture,
    SectionFixture,
    create_database,
    populate_course,
)


ENROLLED_ACCOUNT = "acct-1"
UNENROLLED_ACCOUNT = "acct-2"
CANCELLED_ACCOUNT = "acct-3"
NO_PROFILE_ACCOUNT = "acct-ghost"


def scenario_fixture() -> CourseFixture:
    """[lessons: L1, L2] -> [quiz] -> [assignment]."""
    return CourseFixture(
        course=Course(id="course-1", title="Intro Course", slug="intro-course"),
        users=[
            AppUser(id="app-user-1", user_id=ENROLLED_ACCOUNT, name="Enrolled"),
            AppUser(id="app-user-2", user_id=UNENROLLED_ACCOUNT, name="Visitor"),
            AppUser(id="app-user-3", user_id=CANCELLED_ACCOUNT, name="Cancelled"),
        ],
        sections=[
            SectionFixture(
                id="sec-lessons",
                title="Basics",
                type="lessons",
                order=1,
                lessons=[
                    LessonFixture(
                        id="lesson-1", title="Welcome", slug="welcome", order=1,
                        content=LessonContent(video_url="https://v.example.com/1.mp4",
                                              duration_minutes=5, is_free=True),
                    ),
                    LessonFixture(
                        id="lesson-2", title="Setup", slug="setup", order=2,
                        content=LessonContent(video_url="https://v.example.com/2.mp4",
                                              duration_minutes=12),
                    ),
                ],
            ),
            SectionFixture(
                id="sec-quiz",
                title="Checkpoint",
                type="quiz",
                order=2,
                quiz=QuizFixture(
                    id="quiz-1",
                    title="Basics Quiz",
                    passing_score=80,
                    time_limit=15,
                    questions=[
                        QuizQuestion(id="qq-1", question="2 + 2?", options=["3", "4"], correct_answer="4"),
                        QuizQuestion(id="qq-2", question="3 * 3?", options=["6", "9"], correct_answer="9"),
                    ],
                ),
            ),
            SectionFixture(
                id="sec-assignment",
                title="Project",
                type="assignment",
                order=3,
                assignment=AssignmentFixture(
                    id="assignment-1",
                    title="Build a thing",
                    description="Build it.",
                    max_score=50,
                ),
            ),
        ],
        enrollments=[
            EnrollmentFixture(id="enr-1", app_user_id="app-user-1"),
            EnrollmentFixture(id="enr-3", app_user_id="app-user-3", status="cancelled"),
        ],
    )


def other_course_fixture() -> CourseFixture:
    """A second course the scenario users are also enrolled in."""
    return CourseFixture(
        course=Course(id="course-2", title="Other Course", slug="other-course"),
        sections=[
            SectionFixture(
                id="sec-other",
                title="Other",
                type="lessons",
                order=1,
                lessons=[LessonFixture(id="other-lesson-1", title="Elsewhere", slug="elsewhere", order=1)],
            ),
        ],
        enrollments=[EnrollmentFixture(id="enr-other-1", app_user_id="app-user-1")],
    )


def build_database(path, *fixtures: CourseFixture):
    conn = create_database(path)
    try:
        for fixture in fixtures:
            populate_course(conn, fixture)
    finally:
        conn.close()
    return path


@pytest.fixture
def db_path(tmp_path):
    return build_database(tmp_path / "course.db", scenario_fixture(), other_course_fixture())


@pytest.fixture
def store(db_path):
    return CourseStore(db_path)


@pytest.fixture
def loader(store):
    return CurriculumLoader(store)


@pytest.fixture
def tracker(store):
    return CompletionTracker(store)


@pytest.fixture
def scenario():
    return scenario_fixture()


@pytest.fixture
def make_store(tmp_path):
    """Factory: build a store from arbitrary course fixtures."""
    def _make(*fixtures: CourseFixture, name: str = "custom.db") -> CourseStore:
        return CourseStore(build_database(tmp_path / name, *fixtures))
    return _make
