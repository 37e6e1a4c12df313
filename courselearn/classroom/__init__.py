"""
courselearn Classroom - Runtime components for loading and navigating courses.

This module provides:
- CourseStore: Read access to the course database
- CurriculumLoader: Build the learn-page snapshot for an enrolled student
- NavigationResolver: Previous/next over the play sequence
- CompletionTracker: Record lesson completion and course progress
"""

from .store import (
    CourseStore,
    SectionRow,
    SCHEMA,
)

from .navigator import (
    NavigationResolver,
    NavigationResult,
    get_item_url,
    get_first_item,
    get_first_item_url,
)

from .loader import (
    CurriculumLoader,
    project_section,
)

from .progress import (
    CompletionTracker,
)

__all__ = [
    # Store
    "CourseStore",
    "SectionRow",
    "SCHEMA",
    # Navigator
    "NavigationResolver",
    "NavigationResult",
    "get_item_url",
    "get_first_item",
    "get_first_item_url",
    # Loader
    "CurriculumLoader",
    "project_section",
    # Progress
    "CompletionTracker",
]
