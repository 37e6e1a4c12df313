"""
courselearn Viewer - Helpers for the Streamlit learn page.

This module provides:
- Session cursor handling (selected course, current item)
"""

from .session import (
    CURSOR_KEYS,
    reset_cursor,
    select_course,
    move_cursor,
    cursor_locators,
)

__all__ = [
    "CURSOR_KEYS",
    "reset_cursor",
    "select_course",
    "move_cursor",
    "cursor_locators",
]
