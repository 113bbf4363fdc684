"""Derive intro pages, tasks and the Teachers Notes region from a module outline.

Regions are delimited by SubHeader items. ``ModuleOutline`` sorts the items once
and indexes the headers so every position comparison goes through one place.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from apps.canvas.models import ModuleItem
from nexgen.utils.text import to_plain_text

TEACHERS_NOTES_HEADER = "teachers notes"
TEACHER_NOTES_MARKER = "teacher notes"
TASK_HEADER_RE = re.compile(r"^session\s+\d+\s*:\s*task\s+[a-z0-9]", re.IGNORECASE)
INTRO_FALLBACK_PAGES = 2


@dataclass(slots=True)
class SessionPage:
    title: str
    page_url: str
    position: int
    body_html: str
    body_text: str

    @classmethod
    def from_html(cls, *, title: str, page_url: str, position: int, body_html: str | None) -> "SessionPage":
        html = body_html or ""
        return cls(
            title=title,
            page_url=page_url,
            position=position,
            body_html=html,
            body_text=to_plain_text(html),
        )


@dataclass(slots=True)
class SessionTask:
    title: str
    pages: List[SessionPage] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TeacherNotesRange:
    start: int
    end_exclusive: float = math.inf

    def contains(self, position: int) -> bool:
        """True for positions strictly inside the region (the header itself excluded)."""
        return self.start < position < self.end_exclusive


def is_task_header(item: ModuleItem) -> bool:
    return item.is_subheader and bool(TASK_HEADER_RE.match(item.title.strip()))


def is_teachers_notes_header(item: ModuleItem) -> bool:
    return item.is_subheader and item.title.strip().lower() == TEACHERS_NOTES_HEADER


class ModuleOutline:
    """Position-sorted module items with the SubHeader boundaries pre-computed."""

    def __init__(self, items: Iterable[ModuleItem]) -> None:
        self.items: List[ModuleItem] = sorted(items, key=lambda item: item.position)
        self.task_headers: List[ModuleItem] = [item for item in self.items if is_task_header(item)]
        self.notes_header: Optional[ModuleItem] = next(
            (item for item in self.items if is_teachers_notes_header(item)),
            None,
        )
        self.notes_range: Optional[TeacherNotesRange] = self._compute_notes_range()

    def _compute_notes_range(self) -> Optional[TeacherNotesRange]:
        header = self.notes_header
        if header is None:
            return None
        next_subheader = next(
            (item for item in self.items if item.is_subheader and item.position > header.position),
            None,
        )
        if next_subheader is None:
            return TeacherNotesRange(start=header.position)
        return TeacherNotesRange(start=header.position, end_exclusive=next_subheader.position)

    def in_notes_range(self, position: int) -> bool:
        return self.notes_range is not None and self.notes_range.contains(position)

    def insertion_position(self) -> int:
        if self.notes_header is not None:
            return self.notes_header.position + 1
        if not self.items:
            return 1
        return self.items[0].position

    def intro_pages(self, pages: Sequence[SessionPage]) -> List[SessionPage]:
        ordered = sorted(pages, key=lambda page: page.position)
        if not self.task_headers:
            return ordered[:INTRO_FALLBACK_PAGES]
        first_task = self.task_headers[0].position
        return [page for page in ordered if page.position < first_task]

    def tasks(self, pages: Sequence[SessionPage]) -> List[SessionTask]:
        ordered = sorted(pages, key=lambda page: page.position)
        tasks: List[SessionTask] = []
        for index, header in enumerate(self.task_headers):
            upper = (
                self.task_headers[index + 1].position
                if index + 1 < len(self.task_headers)
                else math.inf
            )
            matched = [page for page in ordered if header.position < page.position < upper]
            if matched:
                tasks.append(SessionTask(title=header.title, pages=matched))
        return tasks

    def source_page_items(self, page_title: str) -> List[ModuleItem]:
        """Page items eligible as source material for a notes page titled ``page_title``."""

        title_key = page_title.strip().lower()
        selected: List[ModuleItem] = []
        for item in self.items:
            if not item.is_page or not item.page_url:
                continue
            item_key = item.title.strip().lower()
            if item_key == title_key or TEACHER_NOTES_MARKER in item_key:
                continue
            if self.in_notes_range(item.position):
                continue
            selected.append(item)
        return selected


def find_teacher_notes_range(items: Iterable[ModuleItem]) -> Optional[TeacherNotesRange]:
    return ModuleOutline(items).notes_range


def resolve_intro_pages(items: Iterable[ModuleItem], pages: Sequence[SessionPage]) -> List[SessionPage]:
    return ModuleOutline(items).intro_pages(pages)


def resolve_tasks(items: Iterable[ModuleItem], pages: Sequence[SessionPage]) -> List[SessionTask]:
    return ModuleOutline(items).tasks(pages)


def find_teacher_notes_insertion_position(items: Iterable[ModuleItem]) -> int:
    return ModuleOutline(items).insertion_position()


__all__ = [
    "ModuleOutline",
    "SessionPage",
    "SessionTask",
    "TASK_HEADER_RE",
    "TeacherNotesRange",
    "find_teacher_notes_insertion_position",
    "find_teacher_notes_range",
    "is_task_header",
    "resolve_intro_pages",
    "resolve_tasks",
]
