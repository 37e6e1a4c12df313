"""
CurriculumLoader - Build the learn-page snapshot for one enrolled student.

Loads course -> app user -> enrollment -> completions -> sections -> section
contents, projects every lesson / quiz section / assignment section into a
LearningItem, and resolves current/previous/next for the requested locator.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from courselearn.config import SECTION_FETCH_WORKERS
from courselearn.schemas import (
    AssignmentInfo,
    AssignmentSection,
    CourseLearnData,
    CourseSummary,
    LearningItem,
    LessonsSection,
    QuizInfo,
    QuizSection,
    Section,
    SectionData,
    SectionType,
    VideoInfo,
    validate_identifier,
)

from .navigator import NavigationResolver
from .store import CourseStore, SectionRow

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Projection
# -----------------------------------------------------------------------------

def _video_info(lesson) -> VideoInfo:
    content = lesson.content
    if content is None:
        return VideoInfo()
    return VideoInfo(
        url=content.video_url,
        playback_id=content.video_playback_id,
        duration=content.duration_minutes * 60 if content.duration_minutes else None,
        is_free=content.is_free,
    )


def _quiz_info(quiz) -> Optional[QuizInfo]:
    if quiz is None:
        return None
    return QuizInfo(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        passing_score=quiz.passing_score,
        time_limit=quiz.time_limit,
        max_attempts=quiz.max_attempts,
        question_count=quiz.question_count,
    )


def _assignment_info(assignment) -> Optional[AssignmentInfo]:
    if assignment is None:
        return None
    return AssignmentInfo(
        id=assignment.id,
        title=assignment.title,
        description=assignment.description,
        instructions=assignment.instructions,
        due_date=assignment.due_date,
        max_score=assignment.max_score,
    )


def project_section(section: Section, completed_lesson_ids: set[str]) -> SectionData:
    """
    Project a fetched section into its sidebar group and learning items.

    Quiz and assignment sections yield exactly one item addressed by the
    section id. Their is_completed is always False: attempts and submissions
    are not tracked by lesson_progress.
    """
    common = dict(
        section_id=section.id,
        section_title=section.title,
        section_order=section.order,
    )

    if isinstance(section, LessonsSection):
        items = [
            LearningItem(
                id=lesson.id,
                address_key=lesson.id,
                title=lesson.title,
                slug=lesson.slug,
                order=lesson.order,
                section_type=SectionType.LESSONS,
                is_completed=lesson.id in completed_lesson_ids,
                video=_video_info(lesson),
                **common,
            )
            for lesson in sorted(section.lessons, key=lambda l: l.order)
        ]
        return SectionData(
            id=section.id,
            title=section.title,
            description=section.description,
            type=SectionType.LESSONS,
            order=section.order,
            items=items,
            completed_count=sum(1 for item in items if item.is_completed),
            total_count=len(items),
        )

    if isinstance(section, QuizSection):
        quiz = _quiz_info(section.quiz)
        item = LearningItem(
            id=section.id,
            address_key=section.id,
            title=quiz.title if quiz else section.title,
            slug=section.id,
            order=0,
            section_type=SectionType.QUIZ,
            is_completed=False,
            quiz=quiz,
            **common,
        )
        return SectionData(
            id=section.id,
            title=section.title,
            description=section.description,
            type=SectionType.QUIZ,
            order=section.order,
            items=[item],
            completed_count=0,
            total_count=1,
            quiz=quiz,
        )

    if isinstance(section, AssignmentSection):
        assignment = _assignment_info(section.assignment)
        item = LearningItem(
            id=section.id,
            address_key=section.id,
            title=assignment.title if assignment else section.title,
            slug=section.id,
            order=0,
            section_type=SectionType.ASSIGNMENT,
            is_completed=False,
            assignment=assignment,
            **common,
        )
        return SectionData(
            id=section.id,
            title=section.title,
            description=section.description,
            type=SectionType.ASSIGNMENT,
            order=section.order,
            items=[item],
            completed_count=0,
            total_count=1,
            assignment=assignment,
        )

    raise TypeError(f"Unsupported section: {type(section).__name__}")


# -----------------------------------------------------------------------------
# Loader
# -----------------------------------------------------------------------------

class CurriculumLoader:
    """
    Load the curriculum of a course for one student.

    Combines CourseStore (content + enrollment + completion state) with
    NavigationResolver (current/previous/next).
    """

    def __init__(self, store: CourseStore, max_workers: int = SECTION_FETCH_WORKERS):
        """
        Initialize loader.

        Args:
            store: CourseStore for database access
            max_workers: Threads used to fetch section contents; 1 fetches sequentially
        """
        self.store = store
        self.max_workers = max(1, max_workers)

    def fetch_section(self, row: SectionRow) -> Section:
        """Fetch the children of one section into its tagged form."""
        base = dict(
            id=row.id,
            course_id=row.course_id,
            title=row.title,
            description=row.description,
            order=row.order,
        )
        if row.type == SectionType.LESSONS:
            return LessonsSection(lessons=self.store.get_lessons_for_section(row.id), **base)
        if row.type == SectionType.QUIZ:
            return QuizSection(quiz=self.store.get_quiz_for_section(row.id), **base)
        return AssignmentSection(assignment=self.store.get_assignment_for_section(row.id), **base)

    def fetch_sections(self, rows: list[SectionRow]) -> list[Section]:
        """
        Fetch all sections, sequentially or on a thread pool.

        The result is always in section order, whatever order fetches finish in.
        """
        rows = sorted(rows, key=lambda r: r.order)
        if self.max_workers == 1 or len(rows) <= 1:
            return [self.fetch_section(row) for row in rows]

        fetched: dict[str, Section] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(rows))) as executor:
            futures = {executor.submit(self.fetch_section, row): row.id for row in rows}
            for future in as_completed(futures):
                fetched[futures[future]] = future.result()

        return [fetched[row.id] for row in rows]

    def load(
        self,
        course_slug: str,
        user_id: str,
        current_lesson_id: Optional[str] = None,
        current_section_id: Optional[str] = None,
    ) -> Optional[CourseLearnData]:
        """
        Load the learn-page snapshot.

        Args:
            course_slug: Slug of the course
            user_id: Platform account id of the student
            current_lesson_id: Locator for video lesson views
            current_section_id: Locator for quiz / assignment views

        Returns:
            CourseLearnData, or None when the course doesn't exist, the account
            has no profile, or the profile isn't enrolled. The three cases are
            indistinguishable to the caller.

        Raises:
            ValueError: If any identifier is malformed (before any query runs)
        """
        validate_identifier(course_slug, "course_slug")
        validate_identifier(user_id, "user_id")
        if current_lesson_id is not None:
            validate_identifier(current_lesson_id, "current_lesson_id")
        if current_section_id is not None:
            validate_identifier(current_section_id, "current_section_id")

        course = self.store.get_course_by_slug(course_slug)
        if course is None:
            logger.debug("Learn data denied: unknown course %s", course_slug)
            return None

        app_user = self.store.get_app_user(user_id)
        if app_user is None:
            logger.debug("Learn data denied: no profile for account %s", user_id)
            return None

        enrollment = self.store.get_enrollment(app_user.id, course.id)
        if enrollment is None or not enrollment.grants_access:
            logger.debug("Learn data denied: %s not enrolled in %s", app_user.id, course.id)
            return None

        completed_lesson_ids = self.store.get_completed_lesson_ids(app_user.id)

        sections = self.fetch_sections(self.store.get_section_rows(course.id))
        sections_data = [project_section(section, completed_lesson_ids) for section in sections]
        all_items = [item for section_data in sections_data for item in section_data.items]

        navigation = NavigationResolver(all_items).resolve(current_lesson_id or current_section_id)

        logger.debug(
            "Loaded %d items in %d sections for course %s",
            len(all_items), len(sections_data), course.slug,
        )

        return CourseLearnData(
            course=CourseSummary(
                id=course.id,
                title=course.title,
                slug=course.slug,
                thumbnail=course.thumbnail,
            ),
            sections=sections_data,
            all_items=all_items,
            total_items=len(all_items),
            completed_items=sum(1 for item in all_items if item.is_completed),
            current_item=navigation.current,
            previous_item=navigation.previous,
            next_item=navigation.next,
        )
