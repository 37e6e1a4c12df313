"""
courselearn - Course learn page

Streamlit application that renders the learn view of an enrolled course:
sidebar grouped by section, the current item, previous/next controls and
lesson completion.

Usage:
    streamlit run app.py
"""

import streamlit as st

from courselearn.classroom import (
    CompletionTracker,
    CourseStore,
    CurriculumLoader,
    NavigationResolver,
    get_first_item,
    get_item_url,
)
from courselearn.config import DEFAULT_DB_PATH, configure_logging
from courselearn.schemas import CourseLearnData, LearningItem, SectionType
from courselearn.viewer import cursor_locators, move_cursor, reset_cursor, select_course


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

configure_logging()

st.set_page_config(
    page_title="courselearn",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "store" not in st.session_state:
        if DEFAULT_DB_PATH.exists():
            st.session_state.store = CourseStore(DEFAULT_DB_PATH)
        else:
            st.session_state.store = None

    if "loader" not in st.session_state and st.session_state.store:
        st.session_state.loader = CurriculumLoader(st.session_state.store)
        st.session_state.tracker = CompletionTracker(st.session_state.store)

    if "locator" not in st.session_state:
        reset_cursor(st.session_state)


def select_item(item: LearningItem):
    """Move the cursor to an item and reload."""
    move_cursor(st.session_state, item)
    st.rerun()


def load_learn_data(course_slug: str, user_id: str) -> CourseLearnData | None:
    """Full reload of the snapshot for the current locator."""
    lesson_id, section_id = cursor_locators(st.session_state)
    return st.session_state.loader.load(
        course_slug, user_id, current_lesson_id=lesson_id, current_section_id=section_id
    )


# -----------------------------------------------------------------------------
# Sidebar: Curriculum
# -----------------------------------------------------------------------------

def render_sidebar(data: CourseLearnData):
    """Render the sidebar with sections, items and progress."""
    st.sidebar.title(f"🎓 {data.course.title}")

    percent = round(data.completed_items / data.total_items * 100) if data.total_items else 0
    st.sidebar.markdown(
        f"**Progress:** {data.completed_items}/{data.total_items} items ({percent}%)"
    )
    st.sidebar.progress(percent / 100)
    st.sidebar.divider()

    current_key = data.current_item.address_key if data.current_item else None
    for section in data.sections:
        header = f"**{section.title}** ({section.completed_count}/{section.total_count})"
        with st.sidebar.expander(header, expanded=any(i.address_key == current_key for i in section.items)):
            for item in section.items:
                indicator = "✓" if item.is_completed else ("→" if item.address_key == current_key else "○")
                if st.button(f"{indicator} {item.title}", key=f"item_{item.address_key}", use_container_width=True):
                    select_item(item)


# -----------------------------------------------------------------------------
# Main Content: Current Item
# -----------------------------------------------------------------------------

def render_navigation_bar(data: CourseLearnData):
    """Render prev/next buttons; disabled at the ends of the sequence."""
    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        previous = data.previous_item
        if st.button("← Previous", use_container_width=True, disabled=previous is None):
            select_item(previous)

    with col2:
        position, total = NavigationResolver(data.all_items).get_position(data.current_item.address_key)
        st.markdown(f"<center>Item {position} of {total}</center>", unsafe_allow_html=True)

    with col3:
        following = data.next_item
        if st.button("Next →", use_container_width=True, disabled=following is None):
            select_item(following)

    st.divider()


def render_item(data: CourseLearnData, user_id: str):
    """Render the current item pane."""
    item = data.current_item
    st.title(item.title)
    st.caption(f"{item.section_title} · {get_item_url(data.course.slug, item)}")

    if item.section_type == SectionType.LESSONS:
        if item.video.url:
            st.video(item.video.url)
        else:
            st.info("Video not uploaded yet.")
        render_completion_section(data, item, user_id)

    elif item.section_type == SectionType.QUIZ:
        if item.quiz is None:
            st.info("This quiz is not ready yet.")
            return
        st.markdown(item.quiz.description or "")
        st.markdown(
            f"**{item.quiz.question_count} questions** · passing score {item.quiz.passing_score}%"
        )
        for question in st.session_state.store.get_quiz_questions(item.quiz.id):
            st.markdown(f"- {question.question}")

    elif item.section_type == SectionType.ASSIGNMENT:
        if item.assignment is None:
            st.info("This assignment is not ready yet.")
            return
        st.markdown(item.assignment.description or "")
        if item.assignment.instructions:
            st.markdown(f"**Instructions:** {item.assignment.instructions}")
        st.markdown(f"**Max score:** {item.assignment.max_score}")


def render_completion_section(data: CourseLearnData, item: LearningItem, user_id: str):
    """Render lesson completion section."""
    st.divider()
    if item.is_completed:
        st.success("Lesson completed!")
        return

    if st.button("Mark lesson as complete", type="primary", use_container_width=True):
        result = st.session_state.tracker.mark_complete(data.course.slug, item.address_key, user_id)
        if result.success:
            st.rerun()
        else:
            st.warning(result.message)


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()

    if not st.session_state.store:
        st.error("Database not found. Seed it first:")
        st.code("python scripts/seed_course.py data/sample_course.yaml --overwrite")
        return

    course_slug = st.sidebar.text_input("Course", value="python-basics")
    select_course(st.session_state, course_slug)
    user_id = st.sidebar.text_input("Account id", value="demo")

    try:
        data = load_learn_data(course_slug, user_id)
    except ValueError as e:
        st.error(str(e))
        return

    if data is None:
        st.warning("This course is not available. Enroll from the course page to start learning.")
        return

    if st.session_state.locator is None:
        first = get_first_item(data.sections)
        if first is None:
            st.info("This course doesn't have any content yet. Check back later!")
            return
        select_item(first)

    if data.current_item is None:
        st.error("This item is not part of the course.")
        return

    render_sidebar(data)
    render_navigation_bar(data)
    render_item(data, user_id)


if __name__ == "__main__":
    main()
