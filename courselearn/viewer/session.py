"""
Learn-page session state helpers.

The learn page keeps its cursor in Streamlit's session state. These helpers
work on any mutable mapping so they can be used outside a running app.
"""

from typing import MutableMapping, Optional

from courselearn.schemas import LearningItem, SectionType

CURSOR_KEYS = ("locator", "locator_type")


def reset_cursor(state: MutableMapping):
    """Forget the current item; the next load jumps to the first item."""
    for key in CURSOR_KEYS:
        state[key] = None


def select_course(state: MutableMapping, course_slug: str) -> bool:
    """
    Record the selected course.

    Returns True when the course changed, in which case the cursor of the
    previous course has been cleared.
    """
    if state.get("course_slug") == course_slug:
        return False
    state["course_slug"] = course_slug
    reset_cursor(state)
    return True


def move_cursor(state: MutableMapping, item: LearningItem):
    """Point the cursor at an item."""
    state["locator"] = item.address_key
    state["locator_type"] = item.section_type


def cursor_locators(state: MutableMapping) -> tuple[Optional[str], Optional[str]]:
    """Split the cursor into (current_lesson_id, current_section_id) for the loader."""
    locator = state.get("locator")
    if state.get("locator_type") == SectionType.LESSONS:
        return locator, None
    return None, locator
