"""
Navigator - Sequential navigation over a course's play sequence.

Provides:
- Current/previous/next resolution for a locator
- Position of an item in the sequence
- Learn-page URLs for items and the course landing item
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from courselearn.schemas import LearningItem, SectionData, SectionType


@dataclass(frozen=True)
class NavigationResult:
    """Cursor position in the play sequence; all None when unresolved."""
    current: Optional[LearningItem] = None
    previous: Optional[LearningItem] = None
    next: Optional[LearningItem] = None

    @property
    def found(self) -> bool:
        return self.current is not None


class NavigationResolver:
    """
    Linear cursor over the flattened play sequence.

    A locator matches an item by its address key (lesson id, or section id for
    quiz/assignment items) or by its section id; the first match in sequence
    order wins. Previous/next cross section boundaries.
    """

    def __init__(self, items: Iterable[LearningItem]):
        self._items: list[LearningItem] = list(items)
        self._index: dict[str, int] = {}
        for idx, item in enumerate(self._items):
            self._index.setdefault(item.address_key, idx)
            self._index.setdefault(item.section_id, idx)

    @property
    def total_items(self) -> int:
        return len(self._items)

    @property
    def first_item(self) -> Optional[LearningItem]:
        return self._items[0] if self._items else None

    def index_of(self, locator_id: Optional[str]) -> Optional[int]:
        """Index of the item a locator points at, or None."""
        if not locator_id:
            return None
        return self._index.get(locator_id)

    def resolve(self, locator_id: Optional[str] = None) -> NavigationResult:
        """
        Resolve current/previous/next for a locator.

        No locator and unknown locator both give an empty result; callers
        redirect to the first item in the first case and show not-found in
        the second.
        """
        idx = self.index_of(locator_id)
        if idx is None:
            return NavigationResult()

        return NavigationResult(
            current=self._items[idx],
            previous=self._items[idx - 1] if idx > 0 else None,
            next=self._items[idx + 1] if idx < len(self._items) - 1 else None,
        )

    def get_position(self, locator_id: str) -> tuple[int, int]:
        """
        Get item position as (current, total), 1-based.

        Returns (0, total) if the locator matches nothing.
        """
        idx = self.index_of(locator_id)
        if idx is None:
            return (0, len(self._items))
        return (idx + 1, len(self._items))


# -----------------------------------------------------------------------------
# URL helpers
# -----------------------------------------------------------------------------

def get_item_url(course_slug: str, item: LearningItem) -> str:
    """Learn-page URL of an item; quiz and assignment pages take the section id."""
    if item.section_type == SectionType.QUIZ:
        return f"/courses/{course_slug}/learn/quiz/{item.section_id}"
    if item.section_type == SectionType.ASSIGNMENT:
        return f"/courses/{course_slug}/learn/assignment/{item.section_id}"
    return f"/courses/{course_slug}/learn/video/{item.address_key}"


def get_first_item(sections: list[SectionData]) -> Optional[LearningItem]:
    """First item of the first section that has any items."""
    for section in sections:
        if section.items:
            return section.items[0]
    return None


def get_first_item_url(course_slug: str, sections: list[SectionData]) -> Optional[str]:
    """URL the course landing page redirects to; None when there is no content."""
    item = get_first_item(sections)
    return get_item_url(course_slug, item) if item else None
